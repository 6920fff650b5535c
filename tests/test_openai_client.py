from types import SimpleNamespace

import httpx
import pytest
from openai import APIStatusError

from core.api import openai_client
from core.orchestrator.provider import OpenAIModelProvider
from exceptions.exceptions import UpstreamError


class FakeCompletions:
    def __init__(self, choices=None, error=None):
        self.choices = choices
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=self.choices)


class FakeSpeech:
    def __init__(self, audio=b"mp3", error=None):
        self.audio = audio
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(read=lambda: self.audio)


def _status_error(status_code, text):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request, text=text)
    return APIStatusError("request failed", response=response, body=None)


def _install(monkeypatch, completions=None, speech=None):
    fake = SimpleNamespace(
        chat=SimpleNamespace(completions=completions or FakeCompletions()),
        audio=SimpleNamespace(speech=speech or FakeSpeech()),
    )
    monkeypatch.setattr(openai_client, "_client", fake)
    return fake


def _choice(content):
    return SimpleNamespace(message=SimpleNamespace(content=content))


def test_chat_request_passes_parameters(monkeypatch):
    completions = FakeCompletions(choices=[_choice("Hello!")])
    _install(monkeypatch, completions=completions)

    text = openai_client.send_chat_request(
        [{"role": "user", "content": "hi"}],
        max_tokens=500,
        temperature=0.7,
        model="gpt-test",
    )

    assert text == "Hello!"
    assert completions.kwargs == {
        "model": "gpt-test",
        "messages": [{"role": "user", "content": "hi"}],
        "max_tokens": 500,
        "temperature": 0.7,
    }


def test_chat_request_without_choices_returns_none(monkeypatch):
    _install(monkeypatch, completions=FakeCompletions(choices=[]))

    assert openai_client.send_chat_request([], max_tokens=20, temperature=0.0) is None


def test_chat_request_status_error_becomes_upstream_error(monkeypatch):
    _install(monkeypatch, completions=FakeCompletions(error=_status_error(429, "quota exceeded")))

    with pytest.raises(UpstreamError) as excinfo:
        openai_client.send_chat_request([], max_tokens=20, temperature=0.0)

    assert excinfo.value.status_code == 429
    assert excinfo.value.details == "quota exceeded"
    assert excinfo.value.message == "OpenAI API request failed."


def test_speech_request_reads_audio(monkeypatch):
    speech = FakeSpeech(audio=b"ID3")
    _install(monkeypatch, speech=speech)

    provider = OpenAIModelProvider(tts_model="tts-1", tts_voice="echo")

    assert provider.speech("Hi there!") == b"ID3"
    assert speech.kwargs == {"model": "tts-1", "voice": "echo", "input": "Hi there!"}


def test_speech_status_error_uses_tts_message(monkeypatch):
    _install(monkeypatch, speech=FakeSpeech(error=_status_error(500, "down")))

    with pytest.raises(UpstreamError) as excinfo:
        openai_client.send_speech_request("hi")

    assert excinfo.value.status_code == 500
    assert excinfo.value.message == "TTS API request failed."


def test_missing_api_key_is_reported(monkeypatch):
    from configs.settings import Settings

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        Settings().openai_api_key


def _client_over(monkeypatch, handler):
    """Build the shared client for real, with its HTTP traffic sent to `handler`."""
    from configs.settings import settings

    real_openai = openai_client.OpenAI

    def build(**kwargs):
        return real_openai(http_client=httpx.Client(transport=httpx.MockTransport(handler)), **kwargs)

    monkeypatch.setattr(openai_client, "OpenAI", build)
    monkeypatch.setattr(openai_client, "_client", None)
    monkeypatch.setattr(settings, "_openai_api_key", "sk-test")
    monkeypatch.setattr(settings, "_openai_base_url", "https://openai.test/v1")


def test_shared_client_does_not_retry(monkeypatch):
    _client_over(monkeypatch, lambda request: httpx.Response(200, json={}))

    assert openai_client.get_client().max_retries == 0


@pytest.mark.parametrize("status_code", [500, 429])
def test_failing_chat_call_reaches_provider_once(monkeypatch, status_code):
    hits = []

    def handler(request):
        hits.append(request.url.path)
        return httpx.Response(status_code, json={"error": {"message": "unavailable"}})

    _client_over(monkeypatch, handler)

    with pytest.raises(UpstreamError) as excinfo:
        openai_client.send_chat_request(
            [{"role": "user", "content": "hi"}],
            max_tokens=20,
            temperature=0.0,
        )

    assert excinfo.value.status_code == status_code
    assert hits == ["/v1/chat/completions"]


def test_failing_speech_call_reaches_provider_once(monkeypatch):
    hits = []

    def handler(request):
        hits.append(request.url.path)
        return httpx.Response(503, json={"error": {"message": "unavailable"}})

    _client_over(monkeypatch, handler)

    with pytest.raises(UpstreamError):
        openai_client.send_speech_request("hi")

    assert hits == ["/v1/audio/speech"]
