"""ConversationOrchestrator implementation.

Responsible for:
- checking the shape of the incoming conversation / text
- wrapping each provider call with its task prompt
- normalising provider output into the values the client expects

Current behavior:
- complete: persona system prompt + full conversation, returns reply text
- moderate: classifies ONLY the latest user message
- classify_expression: picks one Expression for the latest assistant message
- synthesize_speech: returns base64-encoded audio

Every call is stateless; nothing is retried or cached.
"""

import base64
import logging
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from exceptions.exceptions import InvalidInputError
from .models import (
    DEFAULT_EXPRESSION,
    Expression,
    Message,
    ModerationStatus,
    find_last,
    render_transcript,
)
from .prompts import (
    EXPRESSION_SYSTEM_PROMPT,
    EXPRESSION_USER_PROMPT,
    MODERATION_SYSTEM_PROMPT,
    MODERATION_USER_PROMPT,
    PERSONA_SYSTEM_PROMPT,
)
from .provider import ModelProvider


logger = logging.getLogger(__name__)

NO_COMPLETION_TEXT = "No completion returned."

COMPLETION_MAX_TOKENS = 500
COMPLETION_TEMPERATURE = 0.7
CLASSIFIER_MAX_TOKENS = 20
CLASSIFIER_TEMPERATURE = 0.0


def _as_conversation(conversation: Any) -> List[Message]:
    """Validate and coerce `conversation` into a list of Message objects."""
    if conversation is None or not isinstance(conversation, (list, tuple)):
        raise InvalidInputError()
    try:
        return [
            m if isinstance(m, Message) else Message.model_validate(m)
            for m in conversation
        ]
    except ValidationError:
        raise InvalidInputError()


class ConversationOrchestrator:
    """Prompting + normalisation logic for the four MOODi operations.

    Parameters
    ----------
    provider:
        Backend used for chat completions and speech synthesis. See
        ModelProvider for the expected interface.
    """

    def __init__(self, provider: ModelProvider):
        self.provider = provider

    # ------------------------------------------------------------------
    # Public API used by the HTTP routes
    # ------------------------------------------------------------------

    def complete(self, conversation: Sequence[Message]) -> str:
        """Relay the conversation, behind the persona prompt, for a reply."""
        messages = _as_conversation(conversation)

        payload: List[Dict[str, str]] = [
            {"role": "system", "content": PERSONA_SYSTEM_PROMPT}
        ]
        payload.extend(m.model_dump() for m in messages)

        text = self.provider.chat(
            payload,
            max_tokens=COMPLETION_MAX_TOKENS,
            temperature=COMPLETION_TEMPERATURE,
        )
        if text is None:
            logger.warning("[ASK] Provider returned no choices")
            return NO_COMPLETION_TEXT
        return text.strip()

    def moderate(self, conversation: Sequence[Message]) -> ModerationStatus:
        """Classify the latest user message as appropriate, inappropriate or gibberish.

        Conversations without any user message are appropriate by
        definition and never reach the provider.
        """
        messages = _as_conversation(conversation)

        latest = find_last(messages, "user")
        if latest is None:
            return ModerationStatus.APPROPRIATE

        payload = [
            {"role": "system", "content": MODERATION_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": MODERATION_USER_PROMPT.format(
                    transcript=render_transcript(messages),
                    latest=latest.content,
                ),
            },
        ]

        raw = self.provider.chat(
            payload,
            max_tokens=CLASSIFIER_MAX_TOKENS,
            temperature=CLASSIFIER_TEMPERATURE,
        )
        status = ModerationStatus.parse(raw)
        if status.is_flagged:
            logger.info("[CHECK] Latest user message flagged as %s", status.value)
        return status

    def classify_expression(self, conversation: Sequence[Message]) -> Expression:
        """Pick the expression that matches the latest assistant message.

        Conversations without any assistant message get the default
        expression without a provider call. Output outside the label set
        also falls back to the default.
        """
        messages = _as_conversation(conversation)

        latest = find_last(messages, "assistant")
        if latest is None:
            return DEFAULT_EXPRESSION

        payload = [
            {
                "role": "system",
                "content": EXPRESSION_SYSTEM_PROMPT.format(
                    labels=", ".join(Expression.labels()),
                ),
            },
            {
                "role": "user",
                "content": EXPRESSION_USER_PROMPT.format(
                    transcript=render_transcript(messages),
                    latest=latest.content,
                ),
            },
        ]

        raw = self.provider.chat(
            payload,
            max_tokens=CLASSIFIER_MAX_TOKENS,
            temperature=CLASSIFIER_TEMPERATURE,
        )
        if raw is None:
            return DEFAULT_EXPRESSION

        expression = Expression.parse(raw)
        if expression.value != raw.strip().lower():
            logger.info("[EXPRESSION] Mapped provider output %r to %s", raw, expression.value)
        return expression

    def synthesize_speech(self, text: Any) -> str:
        """Narrate `text` and return the audio base64-encoded for transport."""
        if not text or not isinstance(text, str):
            raise InvalidInputError("A valid text string is required.")

        audio = self.provider.speech(text)
        return base64.b64encode(audio).decode("ascii")
