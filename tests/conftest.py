from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from client.api import MoodiApi
from client.audio import AudioPlayer
from client.conversation_client import ConversationClient
from core.orchestrator.conversation_orchestrator import ConversationOrchestrator
from core.orchestrator.prompts import (
    MODERATION_SYSTEM_PROMPT,
    PERSONA_SYSTEM_PROMPT,
)
from runtime.api.server import create_app


class ScriptedProvider:
    """ModelProvider stub that answers by task, recognised from the system prompt."""

    def __init__(
        self,
        completion: Optional[str] = "Hi there!",
        moderation: Optional[str] = "appropriate",
        expression: Optional[str] = "joy",
        audio: bytes = b"ID3-fake-mp3",
    ):
        self.answers = {
            "complete": completion,
            "moderate": moderation,
            "expression": expression,
        }
        self.audio = audio
        self.errors: Dict[str, Exception] = {}
        self.calls: List[tuple] = []

    @staticmethod
    def _task(messages) -> str:
        system = messages[0]["content"]
        if system == PERSONA_SYSTEM_PROMPT:
            return "complete"
        if system == MODERATION_SYSTEM_PROMPT:
            return "moderate"
        return "expression"

    def chat(self, messages, *, max_tokens, temperature):
        task = self._task(messages)
        self.calls.append((task, messages, max_tokens, temperature))
        if task in self.errors:
            raise self.errors[task]
        return self.answers[task]

    def speech(self, text):
        self.calls.append(("speech", text))
        if "speech" in self.errors:
            raise self.errors["speech"]
        return self.audio

    def tasks(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingView:
    """ChatView that records every call."""

    def __init__(self):
        self.events: List[tuple] = []
        self.error: Optional[str] = None
        self.reply: Optional[str] = None
        self.new_conversation_visible = False
        self.play_armed = False

    def show_error(self, message):
        self.error = message
        self.events.append(("show_error", message))

    def hide_error(self):
        self.error = None
        self.events.append(("hide_error",))

    def clear_input(self):
        self.events.append(("clear_input",))

    def measure_bubble(self, text):
        return 100.0

    def show_loading(self, placement):
        self.events.append(("show_loading", placement))

    def hide_loading(self):
        self.events.append(("hide_loading",))

    def render_reply(self, text, placement):
        self.reply = text
        self.play_armed = False
        self.events.append(("render_reply", text, placement))

    def reposition_bubble(self, placement):
        self.events.append(("reposition_bubble", placement))

    def show_expression(self, transition):
        self.events.append(("show_expression", transition))

    def set_new_conversation_visible(self, visible):
        self.new_conversation_visible = visible
        self.events.append(("new_conversation_visible", visible))

    def arm_play_control(self):
        self.play_armed = True
        self.events.append(("arm_play_control",))

    def clear_output(self):
        self.reply = None
        self.events.append(("clear_output",))

    def names(self) -> List[str]:
        return [event[0] for event in self.events]


class FakeHandle:
    def __init__(self, number, log):
        self.number = number
        self.log = log
        self.finished = False
        self.stopped = False

    def is_finished(self):
        return self.finished

    def stop(self):
        self.stopped = True
        self.log.append(("stop", self.number))


class FakeAudioBackend:
    def __init__(self):
        self.log: List[tuple] = []
        self.handles: List[FakeHandle] = []

    def start(self, data):
        handle = FakeHandle(len(self.handles) + 1, self.log)
        self.handles.append(handle)
        self.log.append(("start", handle.number, data))
        return handle


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def orchestrator(provider):
    return ConversationOrchestrator(provider=provider)


@pytest.fixture
def http(orchestrator):
    app = create_app(orchestrator)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def audio_backend():
    return FakeAudioBackend()


@pytest.fixture
def chat_client(http, view, audio_backend):
    """ConversationClient wired to the real routes over a stubbed provider."""
    return ConversationClient(
        api=MoodiApi(http_client=http),
        view=view,
        player=AudioPlayer(audio_backend),
    )
