"""
Layout rules for the chat widget.

Pure functions of viewport metrics so that any front end computes the
same placement. ConversationClient uses position_bubble and
ExpressionDisplay itself; textarea_height is for front ends with a
growing input box (a browser page), the terminal view has none.
"""

from dataclasses import dataclass
from typing import Optional

from core.orchestrator.models import DEFAULT_EXPRESSION, Expression


MOBILE_BREAKPOINT = 768
ARROW_ANCHOR_FRACTION = 0.4
MIN_BUBBLE_TOP = 50
TEXTAREA_BOTTOM_RESERVE = 160
FADE_SECONDS = 1.0


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    @property
    def is_narrow(self) -> bool:
        return self.width <= MOBILE_BREAKPOINT


@dataclass(frozen=True)
class BubblePlacement:
    """Where to draw a talk bubble.

    flow=True means the bubble is laid out in normal document flow and
    `top` / `arrow_top` are None.
    """

    flow: bool
    top: Optional[float] = None
    arrow_top: Optional[float] = None


def position_bubble(
    viewport: Viewport,
    bubble_height: float,
    anchor_fraction: float = ARROW_ANCHOR_FRACTION,
    min_top: float = MIN_BUBBLE_TOP,
) -> BubblePlacement:
    """Anchor the bubble's arrow at a fixed fraction of the viewport height.

    The bubble is centred on the anchor but never placed above `min_top`;
    the arrow offset inside the bubble follows so that the arrow itself
    stays on the anchor. Narrow viewports use flow placement.
    """
    if viewport.is_narrow:
        return BubblePlacement(flow=True)

    anchor = viewport.height * anchor_fraction
    top = max(anchor - bubble_height / 2, min_top)
    return BubblePlacement(flow=False, top=top, arrow_top=anchor - top)


@dataclass(frozen=True)
class TextareaSize:
    height: float
    scrolls: bool


def textarea_height(scroll_height: float, viewport_height: float, container_top: float) -> TextareaSize:
    """Grow the input with its content until it would run into the bottom reserve."""
    available = viewport_height - TEXTAREA_BOTTOM_RESERVE - container_top
    if scroll_height > available:
        return TextareaSize(height=available, scrolls=True)
    return TextareaSize(height=scroll_height, scrolls=False)


def image_path(expression: Expression) -> str:
    return f"png/{expression.value}.png"


@dataclass(frozen=True)
class ExpressionTransition:
    previous: Expression
    next: Expression
    duration: float = FADE_SECONDS

    @property
    def previous_image(self) -> str:
        return image_path(self.previous)

    @property
    def next_image(self) -> str:
        return image_path(self.next)


class ExpressionDisplay:
    """Tracks which expression image is on screen."""

    def __init__(self, initial: Expression = DEFAULT_EXPRESSION) -> None:
        self.current = initial

    def transition_to(self, expression: Expression) -> Optional[ExpressionTransition]:
        """Return the cross-fade to `expression`, or None if it is already shown."""
        if expression == self.current:
            return None
        transition = ExpressionTransition(previous=self.current, next=expression)
        self.current = expression
        return transition
