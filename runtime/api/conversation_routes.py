"""HTTP routes for the MOODi chat widget.

Exposes endpoints like:

- POST /ask        -> takes {conversation} and returns {completion}
- POST /check      -> takes {conversation} and returns {status}
- POST /expression -> takes {conversation} and returns {expression}
- POST /tts        -> takes {text} and returns {audio} (base64)
- GET  /healthz    -> liveness probe

Handlers are plain functions so that the blocking provider calls run in
FastAPI's threadpool.
"""

import logging
from typing import Callable, Optional, TypeVar

from fastapi import APIRouter, Depends, Request

from core.orchestrator.conversation_orchestrator import ConversationOrchestrator
from exceptions.exceptions import InternalError, MoodiError, UpstreamError
from ..models.api_models import (
    CompletionResponse,
    ConversationRequest,
    ExpressionResponse,
    ModerationResponse,
    SpeechRequest,
    SpeechResponse,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Router for all conversation endpoints
router = APIRouter()


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    """Return the orchestrator the serving app was built with (app.state.orchestrator)."""
    orchestrator: Optional[ConversationOrchestrator] = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise InternalError("ConversationOrchestrator is not configured on the server.")
    return orchestrator


def _run(tag: str, operation: Callable[[], T]) -> T:
    """Run one orchestrator call, turning unexpected failures into InternalError.

    MoodiError subclasses pass through untouched; the exception handlers
    registered in server.py render them.
    """
    try:
        return operation()
    except UpstreamError as e:
        logger.warning("[%s] Provider returned HTTP %s", tag, e.status_code)
        raise
    except MoodiError:
        raise
    except Exception:
        # Log unexpected errors with a full traceback for debugging.
        logger.exception("[%s] Unexpected error", tag)
        raise InternalError()


@router.post("/ask", response_model=CompletionResponse)
def ask(
    request: ConversationRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> CompletionResponse:
    """Return the assistant's next reply for the conversation."""
    completion = _run("ASK", lambda: orchestrator.complete(request.conversation))
    return CompletionResponse(completion=completion)


@router.post("/check", response_model=ModerationResponse)
def check(
    request: ConversationRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> ModerationResponse:
    """Classify the latest user message of the conversation."""
    status = _run("CHECK", lambda: orchestrator.moderate(request.conversation))
    return ModerationResponse(status=status)


@router.post("/expression", response_model=ExpressionResponse)
def expression(
    request: ConversationRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> ExpressionResponse:
    """Pick the avatar expression for the latest assistant message."""
    chosen = _run(
        "EXPRESSION",
        lambda: orchestrator.classify_expression(request.conversation),
    )
    return ExpressionResponse(expression=chosen.value)


@router.post("/tts", response_model=SpeechResponse)
def tts(
    request: SpeechRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> SpeechResponse:
    """Narrate the given text."""
    audio = _run("TTS", lambda: orchestrator.synthesize_speech(request.text))
    return SpeechResponse(audio=audio)


# --------------------------------------------------------
# Endpoint: GET /healthz
# --------------------------------------------------------
@router.get("/healthz")
def health_check():
    """
    Simple health check endpoint for uptime monitoring.
    """
    return {"status": "ok"}
