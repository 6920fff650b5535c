"""
FastAPI application entry point for the MOODi server.

Responsibilities:
- create the FastAPI app
- construct the shared ConversationOrchestrator (backed by OpenAI)
- translate MOODi exceptions and request validation errors into JSON
- include the conversation routes and serve the widget's static files
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from configs.settings import settings
from core.orchestrator.conversation_orchestrator import ConversationOrchestrator
from core.orchestrator.provider import OpenAIModelProvider
from exceptions.exceptions import InvalidInputError, MoodiError
from . import conversation_routes


logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


async def _handle_moodi_error(request: Request, exc: MoodiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # FastAPI answers 422 by default; MOODi clients expect 400.
    if request.url.path.endswith("/tts"):
        error = InvalidInputError("A valid text string is required.")
    else:
        error = InvalidInputError()
    logger.warning("[API] Rejected body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


# ---------------------------------------------------------------------------
# FastAPI app + route registration
# ---------------------------------------------------------------------------


def create_app(
    orchestrator: ConversationOrchestrator,
    static_dir: Optional[Path] = None,
) -> FastAPI:
    """Build the FastAPI app around the given orchestrator.

    If `static_dir` exists it is mounted at "/" after the API routes, so
    the widget's index.html, scripts and expression images are served by
    the same process.
    """
    app = FastAPI(title="MOODi")

    app.add_exception_handler(MoodiError, _handle_moodi_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)

    # Routes look the orchestrator up on the app they are served by.
    app.state.orchestrator = orchestrator
    app.include_router(conversation_routes.router)

    if static_dir is not None and static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    elif static_dir is not None:
        logger.info("[API] Static directory %s not found; serving API only", static_dir)

    return app


# Main orchestrator used by the routes. The OpenAI client itself is only
# created on the first provider call.
orchestrator = ConversationOrchestrator(provider=OpenAIModelProvider())

app = create_app(orchestrator, static_dir=settings.static_dir)
