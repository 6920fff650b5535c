"""
core.api.openai_client

Thin wrapper around the OpenAI Chat Completions and Speech APIs for MOODi.

Used by:
  - core/orchestrator/provider.py
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from openai import APIStatusError, OpenAI

from configs.settings import settings
from exceptions.exceptions import UpstreamError


logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Client + config
# -------------------------------------------------------------------

# A single shared client, created on first use so that importing this
# module does not require OPENAI_API_KEY to be set. SDK retries are
# disabled: every call reaches the provider exactly once.
_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    """Return the shared OpenAI client, creating it from settings if needed."""
    global _client
    if _client is None:
        _client = OpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            max_retries=0,
        )
    return _client


# -------------------------------------------------------------------
# Internal helpers
# -------------------------------------------------------------------


def _error_body(exc: APIStatusError) -> str:
    """Best-effort extraction of the provider's error body for logging."""
    try:
        return exc.response.text
    except Exception:
        return str(exc.body or exc.message)


# -------------------------------------------------------------------
# Public functions
# -------------------------------------------------------------------


def send_chat_request(
    messages: List[Dict[str, str]],
    *,
    max_tokens: int,
    temperature: float,
    model: Optional[str] = None,
) -> Optional[str]:
    """
    Send a chat-style message list to the OpenAI API.

    Parameters
    ----------
    messages : list of dict
        Messages in the `{"role": ..., "content": ...}` shape, system
        prompt included.
    max_tokens : int
        Output cap for the completion.
    temperature : float
        Sampling temperature.
    model : str, optional
        Override the configured chat model.

    Returns
    -------
    Optional[str]
        The content of the first choice, or None when the API returned
        no choices at all.

    Raises
    ------
    UpstreamError
        If the API answered with a non-success status.
    OpenAIError
        For connection problems and other SDK failures.
    """
    model_name = model or settings.chat_model

    try:
        completion = get_client().chat.completions.create(
            model=model_name,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except APIStatusError as e:
        body = _error_body(e)
        logger.error("[OPENAI] Chat completion failed with HTTP %s: %s", e.status_code, body)
        raise UpstreamError(e.status_code, details=body)

    if not completion.choices:
        return None

    return completion.choices[0].message.content or ""


def send_speech_request(
    text: str,
    *,
    model: Optional[str] = None,
    voice: Optional[str] = None,
) -> bytes:
    """
    Ask the OpenAI Speech API to narrate `text` and return the raw audio bytes.

    Raises UpstreamError on a non-success status, like send_chat_request.
    """
    try:
        response = get_client().audio.speech.create(
            model=model or settings.tts_model,
            voice=voice or settings.tts_voice,
            input=text,
        )
    except APIStatusError as e:
        body = _error_body(e)
        logger.error("[OPENAI] Speech synthesis failed with HTTP %s: %s", e.status_code, body)
        raise UpstreamError(e.status_code, details=body, message="TTS API request failed.")

    return response.read()
