"""
Rendering interface for the conversation client.

ConversationClient only talks to a ChatView; a browser bridge, a GUI or
the TerminalView below can sit behind it.
"""

from typing import Optional, Protocol

from .layout import BubblePlacement, ExpressionTransition


class ChatView(Protocol):
    def show_error(self, message: str) -> None:
        ...

    def hide_error(self) -> None:
        ...

    def clear_input(self) -> None:
        ...

    def measure_bubble(self, text: Optional[str]) -> float:
        """Height of the bubble for `text` (None = loading bubble)."""
        ...

    def show_loading(self, placement: BubblePlacement) -> None:
        ...

    def hide_loading(self) -> None:
        ...

    def render_reply(self, text: str, placement: BubblePlacement) -> None:
        ...

    def reposition_bubble(self, placement: BubblePlacement) -> None:
        ...

    def show_expression(self, transition: ExpressionTransition) -> None:
        ...

    def set_new_conversation_visible(self, visible: bool) -> None:
        ...

    def arm_play_control(self) -> None:
        ...

    def clear_output(self) -> None:
        ...


class TerminalView:
    """Prints the widget's state changes to stdout."""

    LINE_HEIGHT = 20

    def __init__(self, width: int = 80) -> None:
        self.width = width

    def show_error(self, message: str) -> None:
        print(f"[MOODi] ⚠ {message}")

    def hide_error(self) -> None:
        pass

    def clear_input(self) -> None:
        pass

    def measure_bubble(self, text: Optional[str]) -> float:
        if not text:
            return self.LINE_HEIGHT
        lines = sum(len(line) // self.width + 1 for line in text.splitlines() or [""])
        return lines * self.LINE_HEIGHT

    def show_loading(self, placement: BubblePlacement) -> None:
        print("[MOODi] ...")

    def hide_loading(self) -> None:
        pass

    def render_reply(self, text: str, placement: BubblePlacement) -> None:
        print(f"[MOODi] {text}")

    def reposition_bubble(self, placement: BubblePlacement) -> None:
        pass

    def show_expression(self, transition: ExpressionTransition) -> None:
        print(f"[MOODi] ({transition.previous.value} → {transition.next.value})")

    def set_new_conversation_visible(self, visible: bool) -> None:
        if visible:
            print("[MOODi] Type /new to start a new conversation.")

    def arm_play_control(self) -> None:
        print("[MOODi] 🔊 Type /play to hear this reply.")

    def clear_output(self) -> None:
        print("[MOODi] New conversation started.")
