"""ConversationClient implementation.

Responsible for:
- owning the in-memory conversation for one chat session
- driving one turn: complete -> moderate -> (expression) -> speech
- rendering the outcome through a ChatView
- owning the single narration handle

Turn flow:
- empty input never leaves the client; the view shows a validation error
- the user message is appended and never rolled back
- a failed /ask or /check aborts the turn with an error banner
- a flagged reply is replaced by a canned text and the "error" expression
- expression and speech failures are not fatal
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from core.orchestrator.models import (
    DEFAULT_EXPRESSION,
    FLAGGED_EXPRESSION,
    Expression,
    Message,
    ModerationStatus,
    find_last,
)
from exceptions.exceptions import ApiRequestError, TurnInProgressError
from .api import MoodiApi
from .audio import AudioClip, AudioPlayer
from .layout import BubblePlacement, ExpressionDisplay, Viewport, position_bubble
from .view import ChatView


logger = logging.getLogger(__name__)


EMPTY_INPUT_ERROR = "Please enter some text before sending."
COMPLETION_ERROR = "Error: Unable to retrieve response."
MODERATION_ERROR = "Error: Unable to check message."
CONNECTION_ERROR = "Error: Unable to connect to server."
AUDIO_ERROR = "Error: Unable to play audio."

FLAGGED_REPLIES = {
    ModerationStatus.INAPPROPRIATE: "Uh-oh, that's inappropriate! I cannot assist with inappropriate requests.",
    ModerationStatus.GIBBERISH: "Whoa, did a cat walk over your keyboard? Could you rephrase that?",
}


class TurnState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_COMPLETION = "awaiting_completion"
    AWAITING_MODERATION = "awaiting_moderation"
    AWAITING_EXPRESSION = "awaiting_expression"
    FLAGGED = "flagged"
    RENDERED = "rendered"
    AWAITING_AUDIO = "awaiting_audio"
    PLAYABLE = "playable"

    @property
    def accepts_input(self) -> bool:
        return self in (TurnState.IDLE, TurnState.RENDERED, TurnState.PLAYABLE)


@dataclass
class TurnResult:
    """Outcome of one submit() call."""

    state: TurnState
    reply: Optional[str] = None
    expression: Optional[Expression] = None
    status: Optional[ModerationStatus] = None
    error: Optional[str] = None

    @property
    def audio_available(self) -> bool:
        return self.state is TurnState.PLAYABLE


class ConversationClient:
    """One chat session.

    Parameters
    ----------
    api:
        MoodiApi (or compatible) used for the four server routes.
    view:
        ChatView that renders bubbles, errors and expressions.
    player:
        AudioPlayer for narration. When None, or when `speech_enabled`
        is False, turns end after rendering without requesting audio.
    viewport:
        Initial viewport metrics used for bubble placement.
    """

    def __init__(
        self,
        api: MoodiApi,
        view: ChatView,
        player: Optional[AudioPlayer] = None,
        viewport: Viewport = Viewport(width=1280, height=800),
        speech_enabled: bool = True,
    ):
        self.api = api
        self.view = view
        self.player = player
        self.viewport = viewport
        self.speech_enabled = speech_enabled and player is not None

        self.conversation: List[Message] = []
        self.state = TurnState.IDLE
        self.audio: Optional[AudioClip] = None
        self.expression_display = ExpressionDisplay()

        # Text of the bubble currently on screen; "" for the loading bubble,
        # None when nothing is rendered.
        self._bubble_text: Optional[str] = None

    @property
    def expression(self) -> Expression:
        return self.expression_display.current

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def submit(self, text: Optional[str]) -> TurnResult:
        """Run one full turn for the user's input.

        Raises TurnInProgressError if called while another turn is still
        waiting on the server.
        """
        if not self.state.accepts_input:
            raise TurnInProgressError(f"A turn is already in progress ({self.state.value}).")

        user_text = (text or "").strip()
        if not user_text:
            self.view.show_error(EMPTY_INPUT_ERROR)
            return TurnResult(state=self.state, error=EMPTY_INPUT_ERROR)

        try:
            return self._run_turn(user_text)
        except Exception:
            self.state = TurnState.IDLE
            raise

    def play(self) -> bool:
        """Play the current reply's narration, stopping any other clip first."""
        if self.audio is None or self.player is None:
            return False
        try:
            self.player.play(self.audio)
        except OSError as e:
            logger.warning("[CLIENT] Could not start audio playback: %s", e)
            self.view.show_error(AUDIO_ERROR)
            return False
        return True

    def reset(self) -> None:
        """Start a new conversation."""
        if self.player is not None:
            self.player.stop()
        self.audio = None

        self.conversation.clear()
        self._bubble_text = None
        self.view.clear_output()
        self.view.clear_input()
        self.view.set_new_conversation_visible(False)
        self._show_expression(DEFAULT_EXPRESSION)
        self.view.hide_error()
        self.state = TurnState.IDLE

    def on_input(self) -> None:
        """Typing dismisses the error banner."""
        self.view.hide_error()

    def resize(self, width: float, height: float) -> None:
        """Recompute bubble placement for the new viewport."""
        self.viewport = Viewport(width=width, height=height)
        if self._bubble_text is not None:
            self.view.reposition_bubble(self._place(self._bubble_text or None))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_turn(self, user_text: str) -> TurnResult:
        self.view.hide_error()

        # (1) Sending: record the message and show the loading bubble.
        self.state = TurnState.SENDING
        self.conversation.append(Message(role="user", content=user_text))
        self.view.clear_input()
        self._bubble_text = ""
        self.view.show_loading(self._place(None))

        # (2) Completion.
        self.state = TurnState.AWAITING_COMPLETION
        try:
            reply = self.api.complete(self.conversation)
        except ApiRequestError as e:
            return self._abort(e, COMPLETION_ERROR)

        # (3) Moderation over the extended conversation.
        self.conversation.append(Message(role="assistant", content=reply))
        self.state = TurnState.AWAITING_MODERATION
        try:
            status = self.api.moderate(self.conversation)
        except ApiRequestError as e:
            return self._abort(e, MODERATION_ERROR)

        # (4) Flag override or expression classification.
        if status.is_flagged:
            self.state = TurnState.FLAGGED
            reply = FLAGGED_REPLIES[status]
            self.conversation[-1].content = reply
            expression = FLAGGED_EXPRESSION
        else:
            self.state = TurnState.AWAITING_EXPRESSION
            expression = self._fetch_expression()

        # (5) Render.
        self._render(reply, expression)
        self.state = TurnState.RENDERED

        # (6) Narration, optional.
        if self.speech_enabled:
            self.state = TurnState.AWAITING_AUDIO
            self.audio = self._fetch_audio(reply)
            if self.audio is not None:
                self.view.arm_play_control()
                self.state = TurnState.PLAYABLE
            else:
                self.state = TurnState.RENDERED

        return TurnResult(state=self.state, reply=reply, expression=expression, status=status)

    def _abort(self, error: ApiRequestError, message: str) -> TurnResult:
        if error.is_connection_error:
            message = CONNECTION_ERROR
        logger.warning("[CLIENT] Turn aborted in %s: %s", self.state.value, error)
        # The error banner takes the loading bubble's place.
        self._bubble_text = None
        self.view.hide_loading()
        self.view.show_error(message)
        self.state = TurnState.IDLE
        return TurnResult(state=self.state, error=message)

    def _fetch_expression(self) -> Expression:
        if find_last(self.conversation, "assistant") is None:
            return DEFAULT_EXPRESSION
        try:
            return self.api.classify_expression(self.conversation)
        except ApiRequestError as e:
            logger.info("[CLIENT] Expression unavailable, using default: %s", e)
            return DEFAULT_EXPRESSION

    def _fetch_audio(self, text: str) -> Optional[AudioClip]:
        try:
            data = self.api.synthesize_speech(text)
        except ApiRequestError as e:
            logger.info("[CLIENT] Narration unavailable: %s", e)
            return None
        return AudioClip(data)

    def _render(self, reply: str, expression: Expression) -> None:
        # The previous reply's clip is superseded by the new bubble.
        self.audio = None
        self._bubble_text = reply
        self.view.render_reply(reply, self._place(reply))
        self._show_expression(expression)
        if len(self.conversation) > 1:
            self.view.set_new_conversation_visible(True)

    def _show_expression(self, expression: Expression) -> None:
        transition = self.expression_display.transition_to(expression)
        if transition is not None:
            self.view.show_expression(transition)

    def _place(self, text: Optional[str]) -> BubblePlacement:
        return position_bubble(self.viewport, self.view.measure_bubble(text))
