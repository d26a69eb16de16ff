"""OpenAI strategy: single attempt, soft failures, structured logging."""

from __future__ import annotations

import json
import types
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from prometheus_client import REGISTRY

from reflection import openai_strategy
from reflection.models import ReflectionResult
from reflection.openai_strategy import MODEL, OpenAIStrategy, build_messages

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _completion(content):
    message = types.SimpleNamespace(content=content)
    return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])


def _client(*, returns=None, raises=None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=returns, side_effect=raises)
    return client


def _outcome_count(result: str) -> float:
    value = REGISTRY.get_sample_value(
        "reflection_external_call_outcomes_total",
        {"system": "openai", "result": result},
    )
    return value or 0.0


@pytest.fixture
def captured_logger(monkeypatch: pytest.MonkeyPatch):
    logger = MagicMock()
    monkeypatch.setattr(openai_strategy, "logger", logger)
    return logger


def test_build_messages_uses_placeholder_without_goal():
    messages = build_messages("", "Long day.")

    assert messages[0]["role"] == "system"
    assert "journaling coach" in messages[0]["content"]
    assert messages[1]["content"].startswith("Goal: (none provided)\nJournal entry: Long day.")


def test_build_messages_includes_goal():
    messages = build_messages("Ship the MVP", "Long day.")
    assert "Goal: Ship the MVP\n" in messages[1]["content"]


def test_default_client_is_single_attempt_with_timeout():
    strategy = OpenAIStrategy(api_key="sk-test", timeout=7.5)

    assert strategy.client.max_retries == 0
    assert strategy.client.timeout == 7.5


@pytest.mark.parametrize("timeout", [0, -1, None])
def test_requires_positive_timeout(timeout):
    with pytest.raises(ValueError):
        OpenAIStrategy(api_key="sk-test", timeout=timeout, client=MagicMock())


@pytest.mark.asyncio
async def test_successful_completion_is_parsed():
    payload = {"reflection": "  You showed up today. ", "action": "Rest early tonight."}
    client = _client(returns=_completion(json.dumps(payload)))
    strategy = OpenAIStrategy(api_key="sk-test", timeout=5, client=client)
    before = _outcome_count("success")

    result = await strategy.try_generate("", "Long day.")

    assert result == ReflectionResult(reflection="You showed up today.", action="Rest early tonight.")
    assert _outcome_count("success") == before + 1
    client.chat.completions.create.assert_awaited_once()
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == MODEL
    assert kwargs["temperature"] == 0.7
    assert kwargs["messages"] == build_messages("", "Long day.")


@pytest.mark.asyncio
async def test_blank_action_is_dropped():
    client = _client(returns=_completion(json.dumps({"reflection": "Noted.", "action": "  "})))
    strategy = OpenAIStrategy(api_key="sk-test", timeout=5, client=client)

    result = await strategy.try_generate("", "Long day.")

    assert result == ReflectionResult(reflection="Noted.", action=None)
    assert result.to_payload() == {"reflection": "Noted."}


@pytest.mark.asyncio
async def test_status_error_is_soft_and_logged(captured_logger):
    error = openai.InternalServerError(
        "upstream exploded",
        response=httpx.Response(500, request=_REQUEST),
        body=None,
    )
    client = _client(raises=error)
    strategy = OpenAIStrategy(api_key="sk-test", timeout=5, client=client)
    before = _outcome_count("status_500")

    assert await strategy.try_generate("", "Long day.") is None

    client.chat.completions.create.assert_awaited_once()
    captured_logger.warning.assert_called_once()
    assert captured_logger.warning.call_args.kwargs["status_code"] == 500
    assert _outcome_count("status_500") == before + 1


@pytest.mark.asyncio
async def test_rate_limit_is_not_retried(captured_logger):
    error = openai.RateLimitError(
        "slow down",
        response=httpx.Response(429, request=_REQUEST),
        body=None,
    )
    client = _client(raises=error)
    strategy = OpenAIStrategy(api_key="sk-test", timeout=5, client=client)

    assert await strategy.try_generate("Ship it", "Long day.") is None
    assert client.chat.completions.create.await_count == 1
    assert captured_logger.warning.call_args.kwargs["status_code"] == 429


@pytest.mark.asyncio
async def test_timeout_is_soft(captured_logger):
    client = _client(raises=openai.APITimeoutError(request=_REQUEST))
    strategy = OpenAIStrategy(api_key="sk-test", timeout=2, client=client)

    assert await strategy.try_generate("", "Long day.") is None
    assert captured_logger.warning.call_args.kwargs["timeout"] == 2


@pytest.mark.asyncio
async def test_connection_error_is_soft(captured_logger):
    client = _client(raises=openai.APIConnectionError(request=_REQUEST))
    strategy = OpenAIStrategy(api_key="sk-test", timeout=5, client=client)

    assert await strategy.try_generate("", "Long day.") is None
    assert "error" in captured_logger.warning.call_args.kwargs


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "completion",
    [
        types.SimpleNamespace(choices=[]),
        _completion(None),
        _completion("   "),
        _completion("Here is your reflection: be kind to yourself."),
        _completion(json.dumps(["reflection"])),
        _completion(json.dumps({"action": "Walk."})),
        _completion(json.dumps({"reflection": ""})),
        _completion(json.dumps({"reflection": 42})),
    ],
)
async def test_unusable_completions_are_soft(completion, captured_logger):
    strategy = OpenAIStrategy(api_key="sk-test", timeout=5, client=_client(returns=completion))

    assert await strategy.try_generate("", "Long day.") is None
    captured_logger.warning.assert_called_once()


@pytest.mark.asyncio
async def test_missing_content_logs_finish_reason(captured_logger):
    message = types.SimpleNamespace(content=None)
    completion = types.SimpleNamespace(
        choices=[types.SimpleNamespace(message=message, finish_reason="content_filter")]
    )
    strategy = OpenAIStrategy(api_key="sk-test", timeout=5, client=_client(returns=completion))

    assert await strategy.try_generate("", "Long day.") is None

    context = captured_logger.warning.call_args.kwargs
    assert context["choice_count"] == 1
    assert context["finish_reason"] == "content_filter"


@pytest.mark.asyncio
async def test_empty_choices_log_zero_count(captured_logger):
    strategy = OpenAIStrategy(
        api_key="sk-test", timeout=5, client=_client(returns=types.SimpleNamespace(choices=[]))
    )

    assert await strategy.try_generate("", "Long day.") is None

    context = captured_logger.warning.call_args.kwargs
    assert context["choice_count"] == 0
    assert context["finish_reason"] is None
