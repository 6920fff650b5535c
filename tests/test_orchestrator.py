import base64

import pytest

from core.orchestrator.conversation_orchestrator import (
    NO_COMPLETION_TEXT,
    ConversationOrchestrator,
)
from core.orchestrator.models import Expression, Message, ModerationStatus
from core.orchestrator.prompts import PERSONA_SYSTEM_PROMPT
from exceptions.exceptions import InvalidInputError, UpstreamError
from tests.conftest import ScriptedProvider


def _conversation(*pairs):
    return [Message(role=role, content=content) for role, content in pairs]


HELLO = _conversation(("user", "hello"), ("assistant", "Hi there!"))


def test_complete_prepends_persona_and_relays_conversation(orchestrator, provider):
    result = orchestrator.complete(_conversation(("user", "hello")))

    assert result == "Hi there!"
    task, messages, max_tokens, temperature = provider.calls[0]
    assert task == "complete"
    assert messages[0] == {"role": "system", "content": PERSONA_SYSTEM_PROMPT}
    assert messages[1:] == [{"role": "user", "content": "hello"}]
    assert max_tokens == 500
    assert temperature == 0.7


def test_complete_strips_reply():
    orchestrator = ConversationOrchestrator(ScriptedProvider(completion="  Hey!\n"))
    assert orchestrator.complete(_conversation(("user", "hi"))) == "Hey!"


def test_complete_without_choices_returns_fallback():
    orchestrator = ConversationOrchestrator(ScriptedProvider(completion=None))
    assert orchestrator.complete(_conversation(("user", "hi"))) == NO_COMPLETION_TEXT


def test_complete_accepts_plain_dicts(orchestrator):
    assert orchestrator.complete([{"role": "user", "content": "hello"}]) == "Hi there!"


@pytest.mark.parametrize("bad", [None, "hello", {"role": "user"}, [{"role": "bot", "content": "x"}]])
def test_malformed_conversation_is_rejected_without_provider_call(orchestrator, provider, bad):
    for operation in (orchestrator.complete, orchestrator.moderate, orchestrator.classify_expression):
        with pytest.raises(InvalidInputError):
            operation(bad)
    assert provider.calls == []


def test_moderate_without_user_message_skips_provider(orchestrator, provider):
    assert orchestrator.moderate([]) == ModerationStatus.APPROPRIATE
    assert orchestrator.moderate(_conversation(("assistant", "hello?"))) == ModerationStatus.APPROPRIATE
    assert provider.calls == []


def test_moderate_classifies_latest_user_message(orchestrator, provider):
    conversation = _conversation(
        ("user", "first"),
        ("assistant", "reply"),
        ("user", "second"),
        ("assistant", "another reply"),
    )

    orchestrator.moderate(conversation)

    task, messages, max_tokens, temperature = provider.calls[0]
    assert task == "moderate"
    assert max_tokens == 20
    assert temperature == 0.0
    prompt = messages[1]["content"]
    assert "User message 1: first\nAssistant message 2: reply\nUser message 3: second" in prompt
    assert 'Below is the latest user message:\n"second"' in prompt


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("inappropriate", ModerationStatus.INAPPROPRIATE),
        (" Gibberish\n", ModerationStatus.GIBBERISH),
        ("appropriate", ModerationStatus.APPROPRIATE),
        ("I think it is fine", ModerationStatus.APPROPRIATE),
        (None, ModerationStatus.APPROPRIATE),
    ],
)
def test_moderate_normalises_provider_output(raw, expected):
    orchestrator = ConversationOrchestrator(ScriptedProvider(moderation=raw))
    assert orchestrator.moderate(HELLO) == expected


def test_moderate_is_idempotent():
    orchestrator = ConversationOrchestrator(ScriptedProvider(moderation="gibberish"))
    first = orchestrator.moderate(HELLO)
    second = orchestrator.moderate(HELLO)
    assert first == second == ModerationStatus.GIBBERISH


def test_expression_without_assistant_message_is_happy(orchestrator, provider):
    assert orchestrator.classify_expression(_conversation(("user", "hi"))) == Expression.HAPPY
    assert provider.calls == []


def test_expression_prompt_lists_all_labels(orchestrator, provider):
    assert orchestrator.classify_expression(HELLO) == Expression.JOY

    task, messages, max_tokens, temperature = provider.calls[0]
    assert task == "expression"
    assert max_tokens == 20
    assert temperature == 0.0
    assert ", ".join(Expression.labels()) in messages[0]["content"]
    assert "'nerdiness'" in messages[0]["content"]
    assert 'The last assistant message is:\n"Hi there!"' in messages[1]["content"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Nerdiness.", Expression.NERDINESS),
        ("'smug'", Expression.SMUG),
        ("ecstatic", Expression.HAPPY),
        (None, Expression.HAPPY),
    ],
)
def test_expression_maps_output_onto_label_set(raw, expected):
    orchestrator = ConversationOrchestrator(ScriptedProvider(expression=raw))
    assert orchestrator.classify_expression(HELLO) == expected


def test_synthesize_speech_returns_base64(orchestrator, provider):
    encoded = orchestrator.synthesize_speech("Hi there!")
    assert base64.b64decode(encoded) == b"ID3-fake-mp3"
    assert provider.calls == [("speech", "Hi there!")]


@pytest.mark.parametrize("bad", ["", None, 42, ["text"]])
def test_synthesize_speech_rejects_bad_text(orchestrator, provider, bad):
    with pytest.raises(InvalidInputError):
        orchestrator.synthesize_speech(bad)
    assert provider.calls == []


def test_upstream_errors_propagate(provider, orchestrator):
    provider.errors["complete"] = UpstreamError(429, details="rate limited")
    with pytest.raises(UpstreamError) as excinfo:
        orchestrator.complete(_conversation(("user", "hi")))
    assert excinfo.value.status_code == 429
