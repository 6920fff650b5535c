from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """
    Central configuration for MOODi.

    Values are loaded once from environment variables (with sensible defaults)
    and then exposed via typed properties.
    """

    def __init__(self) -> None:
        # OpenAI / model configuration
        self._openai_api_key = os.getenv("OPENAI_API_KEY")
        self._openai_base_url = os.getenv("OPENAI_BASE_URL") or None
        self._chat_model = os.getenv("MOODI_CHAT_MODEL", "gpt-4o-mini")
        self._tts_model = os.getenv("MOODI_TTS_MODEL", "tts-1")
        self._tts_voice = os.getenv("MOODI_TTS_VOICE", "echo")

        # Server
        self._host = os.getenv("MOODI_HOST", "0.0.0.0")
        self._port = int(os.getenv("PORT", "3000"))
        self._static_dir = Path(os.getenv("MOODI_STATIC_DIR", "public"))
        self._log_level = os.getenv("MOODI_LOG_LEVEL", "INFO").upper()

        # Terminal client
        self._server_url = os.getenv("MOODI_SERVER_URL", "http://localhost:3000")
        self._http_timeout = float(os.getenv("MOODI_HTTP_TIMEOUT", "60"))
        self._audio_player = os.getenv(
            "MOODI_AUDIO_PLAYER",
            "ffplay -nodisp -autoexit -loglevel quiet",
        )

    # ------------------------------------------------------------------
    # OpenAI / model settings
    # ------------------------------------------------------------------

    @property
    def openai_api_key(self) -> str:
        if not self._openai_api_key:
            raise RuntimeError(
                "OPENAI_API_KEY is not set. Please export it in your environment "
                "or define it in a .env file."
            )
        return self._openai_api_key

    @property
    def openai_base_url(self) -> Optional[str]:
        return self._openai_base_url

    @property
    def chat_model(self) -> str:
        return self._chat_model

    @property
    def tts_model(self) -> str:
        return self._tts_model

    @property
    def tts_voice(self) -> str:
        return self._tts_voice

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def static_dir(self) -> Path:
        return self._static_dir

    @property
    def log_level(self) -> str:
        return self._log_level

    # ------------------------------------------------------------------
    # Terminal client
    # ------------------------------------------------------------------

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def http_timeout(self) -> float:
        return self._http_timeout

    @property
    def audio_player_command(self) -> List[str]:
        return shlex.split(self._audio_player)


settings = Settings()
