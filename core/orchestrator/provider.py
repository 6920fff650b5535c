"""
Model provider interface for the orchestrator.

The orchestrator never talks to the OpenAI SDK directly; it depends on
this small protocol so that tests (and other vendors) can plug in.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from core.api import openai_client


class ModelProvider(Protocol):
    """
    Abstract backend for the two capabilities MOODi needs.

    chat(messages, max_tokens, temperature) -> Optional[str]
        Text of the first completion choice, None if there was no choice.

    speech(text) -> bytes
        Synthesised audio for `text`.

    Implementations raise UpstreamError when the vendor answers with a
    non-success status.
    """

    def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
    ) -> Optional[str]:
        ...

    def speech(self, text: str) -> bytes:
        ...


class OpenAIModelProvider:
    """ModelProvider implementation using the project-local openai_client.

    Model and voice selection default to the global settings; pass them
    explicitly to override.
    """

    def __init__(
        self,
        chat_model: Optional[str] = None,
        tts_model: Optional[str] = None,
        tts_voice: Optional[str] = None,
    ) -> None:
        self.chat_model = chat_model
        self.tts_model = tts_model
        self.tts_voice = tts_voice

    def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
    ) -> Optional[str]:
        return openai_client.send_chat_request(
            messages,
            max_tokens=max_tokens,
            temperature=temperature,
            model=self.chat_model,
        )

    def speech(self, text: str) -> bytes:
        return openai_client.send_speech_request(
            text,
            model=self.tts_model,
            voice=self.tts_voice,
        )
