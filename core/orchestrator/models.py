"""
Conversation models shared by the orchestrator, the HTTP layer and the client.

These describe:
- a single Message (role + content)
- ModerationStatus enum (appropriate, inappropriate, gibberish)
- Expression enum (the closed set of avatar expressions)
"""

from enum import Enum
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, StrictStr


class Message(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: StrictStr


class ModerationStatus(str, Enum):
    APPROPRIATE = "appropriate"
    INAPPROPRIATE = "inappropriate"
    GIBBERISH = "gibberish"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ModerationStatus":
        """Normalise provider output; anything unexpected counts as appropriate."""
        label = (raw or "").strip().lower()
        if label == cls.INAPPROPRIATE.value:
            return cls.INAPPROPRIATE
        if label == cls.GIBBERISH.value:
            return cls.GIBBERISH
        return cls.APPROPRIATE

    @property
    def is_flagged(self) -> bool:
        return self is not ModerationStatus.APPROPRIATE


class Expression(str, Enum):
    ANGRY = "angry"
    ANNOYED = "annoyed"
    CONFUSED = "confused"
    CRYING = "crying"
    DISGUST = "disgust"
    ERROR = "error"
    EVIL = "evil"
    EXITED = "exited"
    FRUSTRATED = "frustrated"
    FURIOUS = "furious"
    HAPPY = "happy"
    JOY = "joy"
    LAUGHING = "laughing"
    LOVING = "loving"
    NERDINESS = "nerdiness"
    GOOFY = "goofy"
    PROUD = "proud"
    RAGE = "rage"
    SAD = "sad"
    SMUG = "smug"
    SURPRISED = "surprised"
    UNEASY = "uneasy"
    UNHAPPY = "unhappy"
    WINKING = "winking"
    WORRIED = "worried"

    @classmethod
    def labels(cls) -> List[str]:
        return [e.value for e in cls]

    @classmethod
    def parse(cls, raw: Optional[str], default: Optional["Expression"] = None) -> "Expression":
        """
        Map free-form model output onto the closed label set.

        Surrounding whitespace, quotes and trailing punctuation are ignored
        and matching is case-insensitive. Anything else falls back to
        `default` (HAPPY unless given).
        """
        fallback = default if default is not None else cls.HAPPY
        label = (raw or "").strip().strip("\"'`").rstrip(".!?,;:").strip().lower()
        try:
            return cls(label)
        except ValueError:
            return fallback


DEFAULT_EXPRESSION = Expression.HAPPY
FLAGGED_EXPRESSION = Expression.ERROR


def find_last(conversation: Sequence[Message], role: str) -> Optional[Message]:
    """Return the most recent message with the given role, scanning from the end."""
    for message in reversed(conversation):
        if message.role == role:
            return message
    return None


def render_transcript(conversation: Sequence[Message]) -> str:
    """
    Render the conversation as a numbered transcript, one message per line:

        User message 1: hello
        Assistant message 2: Hi there!

    Any role other than "user" is labelled Assistant.
    """
    lines = []
    for index, message in enumerate(conversation, start=1):
        role = "User" if message.role == "user" else "Assistant"
        lines.append(f"{role} message {index}: {message.content}")
    return "\n".join(lines)
