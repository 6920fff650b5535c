"""
HTTP request/response models for the MOODi server API.
"""

from typing import List

from pydantic import BaseModel, Field, StrictStr

from core.orchestrator.models import Message, ModerationStatus


class ConversationRequest(BaseModel):
    """Body of /ask, /check and /expression."""
    conversation: List[Message]


class SpeechRequest(BaseModel):
    """Body of /tts. Empty or non-string text is rejected."""
    text: StrictStr = Field(..., min_length=1)


class CompletionResponse(BaseModel):
    completion: str


class ModerationResponse(BaseModel):
    status: ModerationStatus


class ExpressionResponse(BaseModel):
    # Plain string on the wire; the client re-validates against Expression.
    expression: str


class SpeechResponse(BaseModel):
    audio: str  # base64-encoded MPEG audio


class ErrorResponse(BaseModel):
    error: str
