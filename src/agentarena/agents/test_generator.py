"""Tests for the OpenAI-backed generator, using a stubbed client."""

from types import SimpleNamespace
from unittest.mock import Mock

import httpx
import openai
import pytest
from tenacity import wait_none

from agentarena.agents import (
    EliminationRequest,
    HistoryEntry,
    OpenAIGenerator,
    PersonaContext,
    is_transient_error,
)
from agentarena.errors import SchemaViolation, UpstreamGenerationFailure

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(completion_tokens=12, total_tokens=340),
    )


def status_error(cls, status):
    return cls("upstream said no", response=httpx.Response(status, request=REQUEST), body=None)


@pytest.fixture
def client_stub():
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=Mock())))


@pytest.fixture
def make_llm(client_stub):
    def _make(max_attempts=4):
        return OpenAIGenerator(
            model_name="test-model",
            client=client_stub,
            max_attempts=max_attempts,
            wait=wait_none(),
        )

    return _make


def persona(handle="GameMaster"):
    return PersonaContext(
        game_id=7,
        current_turn=3,
        handle=handle,
        persona_prompt="A flooded tower.",
        active_players=["Alice", "Bob"],
        elimination_interval=6,
        history=[HistoryEntry(handle="GameMaster", message="The water rises.")],
    )


def elimination():
    return EliminationRequest(
        game_id=7,
        current_turn=6,
        game_master_prompt="A flooded tower.",
        active_players=["Alice", "Bob"],
    )


def test_narrate_returns_text(client_stub, make_llm):
    client_stub.chat.completions.create.return_value = completion("  @Alice, climb!  ")
    llm = make_llm()

    assert llm.narrate(persona()) == "@Alice, climb!"

    kwargs = client_stub.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["messages"][0]["role"] == "system"
    assert "A flooded tower." in kwargs["messages"][0]["content"]
    assert "@GameMaster: The water rises." in kwargs["messages"][1]["content"]
    assert llm.last_llm_metadata["total_tokens_consumed"] == 340


def test_narrate_strips_reasoning_and_handles_empty_output(client_stub, make_llm):
    client_stub.chat.completions.create.side_effect = [
        completion("<think>Bob seems weak.</think>Bob, hold the rope."),
        completion(None),
    ]
    llm = make_llm()

    assert llm.narrate(persona("Alice")) == "Bob, hold the rope."
    assert llm.narrate(persona("Alice")) == "No response"


def test_player_prompt_carries_persona():
    messages = persona("Alice").to_messages()

    assert "@Alice" in messages[0]["content"]
    assert "It is your turn, @Alice." in messages[1]["content"]


def test_transient_errors_are_retried(client_stub, make_llm):
    client_stub.chat.completions.create.side_effect = [
        openai.APIConnectionError(request=REQUEST),
        status_error(openai.RateLimitError, 429),
        completion("Third time lucky."),
    ]

    assert make_llm().narrate(persona()) == "Third time lucky."
    assert client_stub.chat.completions.create.call_count == 3


def test_gives_up_after_max_attempts(client_stub, make_llm):
    client_stub.chat.completions.create.side_effect = status_error(
        openai.InternalServerError, 503
    )

    with pytest.raises(UpstreamGenerationFailure):
        make_llm(max_attempts=4).narrate(persona())
    assert client_stub.chat.completions.create.call_count == 4


def test_permanent_errors_are_not_retried(client_stub, make_llm):
    client_stub.chat.completions.create.side_effect = status_error(openai.BadRequestError, 400)

    with pytest.raises(UpstreamGenerationFailure):
        make_llm().narrate(persona())
    assert client_stub.chat.completions.create.call_count == 1


def test_is_transient_error():
    assert is_transient_error(openai.APITimeoutError(request=REQUEST))
    assert is_transient_error(status_error(openai.APIStatusError, 502))
    assert not is_transient_error(status_error(openai.AuthenticationError, 401))
    assert not is_transient_error(ValueError("nope"))


def test_decide_elimination_parses_structured_output(client_stub, make_llm):
    client_stub.chat.completions.create.return_value = completion(
        '```json\n{"playerToKick": {"handle": "Bob", "reason": "Too slow to climb."}}\n```'
    )

    decision = make_llm().decide_elimination(elimination())

    assert decision.player_to_kick.handle == "Bob"
    assert decision.player_to_kick.reason == "Too slow to climb."
    response_format = client_stub.chat.completions.create.call_args.kwargs["response_format"]
    assert response_format["type"] == "json_schema"
    assert "playerToKick" in response_format["json_schema"]["schema"]["properties"]


@pytest.mark.parametrize(
    "content",
    [
        "Bob is out.",
        '{"playerToKick": {"reason": "No handle given"}}',
        '{"player": "Bob"}',
    ],
)
def test_decide_elimination_rejects_malformed_output(client_stub, make_llm, content):
    client_stub.chat.completions.create.return_value = completion(content)

    with pytest.raises(SchemaViolation):
        make_llm().decide_elimination(elimination())
