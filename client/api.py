"""
client.api

HTTP access to the MOODi server routes (/ask, /check, /expression, /tts).

Every method performs exactly one request and raises ApiRequestError
when the server cannot be reached or answers with a non-success status.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from configs.settings import settings
from core.orchestrator.models import Expression, Message, ModerationStatus
from exceptions.exceptions import ApiRequestError


logger = logging.getLogger(__name__)

NO_RESPONSE_TEXT = "No response."


class MoodiApi:
    """Synchronous client for the MOODi server.

    Parameters
    ----------
    base_url:
        Server root, defaults to MOODI_SERVER_URL.
    timeout:
        Per-request timeout in seconds, defaults to MOODI_HTTP_TIMEOUT.
    http_client:
        Pre-built httpx.Client (e.g. FastAPI's TestClient). When given,
        base_url and timeout are ignored.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if http_client is None:
            http_client = httpx.Client(
                base_url=base_url or settings.server_url,
                timeout=timeout if timeout is not None else settings.http_timeout,
            )
        self._http = http_client

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _post(self, route: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._http.post(route, json=body)
        except httpx.HTTPError as e:
            logger.warning("[CLIENT] %s failed: %s", route, e)
            raise ApiRequestError(route, details=str(e))

        if not response.is_success:
            logger.warning("[CLIENT] %s returned HTTP %s", route, response.status_code)
            raise ApiRequestError(route, response.status_code, details=response.text)

        try:
            data = response.json()
        except ValueError:
            raise ApiRequestError(route, response.status_code, details="Response is not JSON")
        if not isinstance(data, dict):
            raise ApiRequestError(route, response.status_code, details="Response is not a JSON object")
        return data

    @staticmethod
    def _conversation_body(conversation: Sequence[Message]) -> Dict[str, Any]:
        return {"conversation": [m.model_dump() for m in conversation]}

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def complete(self, conversation: Sequence[Message]) -> str:
        data = self._post("/ask", self._conversation_body(conversation))
        completion = data.get("completion")
        return completion if isinstance(completion, str) else NO_RESPONSE_TEXT

    def moderate(self, conversation: Sequence[Message]) -> ModerationStatus:
        data = self._post("/check", self._conversation_body(conversation))
        return ModerationStatus.parse(data.get("status"))

    def classify_expression(self, conversation: Sequence[Message]) -> Expression:
        data = self._post("/expression", self._conversation_body(conversation))
        raw = data.get("expression")
        return Expression.parse(raw if isinstance(raw, str) else None)

    def synthesize_speech(self, text: str) -> bytes:
        """Return the decoded audio bytes for `text`."""
        data = self._post("/tts", {"text": text})
        encoded = data.get("audio")
        if not encoded or not isinstance(encoded, str):
            raise ApiRequestError("/tts", 200, details="No audio data received from TTS.")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            raise ApiRequestError("/tts", 200, details="Audio payload is not valid base64.")
