"""Tests for the OpenAI-compatible stage executor."""

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from coldcopy.core.config import LlmSettings
from coldcopy.core.interfaces import EmptyResponseError, UpstreamError
from coldcopy.intelligence import llm as llm_module
from coldcopy.intelligence.llm import OpenAIChatExecutor


def _settings(**overrides: object) -> LlmSettings:
    values: dict[str, object] = {
        "api_key": "sk-test-0123456789",
        "model": "test-model",
        "base_url": "https://llm.example.com/v1/",
        "max_retries": 2,
    }
    values.update(overrides)
    return LlmSettings(**values)  # type: ignore[arg-type]


def _completion(content: str | None) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(llm_module, "asyncio", SimpleNamespace(sleep=_sleep))
    return delays


async def _execute(executor: OpenAIChatExecutor) -> str:
    return await executor.execute(
        stage="Target Scrape",
        system_prompt="system text",
        user_prompt="user text",
        temperature=0.15,
    )


@pytest.mark.asyncio
async def test_execute_posts_chat_completion_and_trims_content() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=_completion("  {\"industry\": \"SaaS\"}\n"))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        executor = OpenAIChatExecutor(_settings(), client=client)
        output = await _execute(executor)

    assert output == '{"industry": "SaaS"}'
    request = captured[0]
    assert str(request.url) == "https://llm.example.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test-0123456789"
    body = json.loads(request.content)
    assert body["model"] == "test-model"
    assert body["temperature"] == 0.15
    assert body["messages"] == [
        {"role": "system", "content": "system text"},
        {"role": "user", "content": "user text"},
    ]
    assert executor.provider_id == "openai:test-model"


@pytest.mark.asyncio
async def test_transient_errors_are_retried(no_backoff: list[float]) -> None:
    responses = iter(
        [httpx.Response(503), httpx.Response(429), httpx.Response(200, json=_completion("ok"))]
    )

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: next(responses))
    ) as client:
        output = await _execute(OpenAIChatExecutor(_settings(), client=client))

    assert output == "ok"
    assert no_backoff == [2, 4]


@pytest.mark.asyncio
async def test_retries_exhausted_raise_upstream_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UpstreamError, match="after 2 attempt"):
            await _execute(OpenAIChatExecutor(_settings(max_retries=1), client=client))

    assert calls == 2


@pytest.mark.asyncio
async def test_client_errors_are_not_retried() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(401, json={"error": {"message": "bad key"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UpstreamError) as excinfo:
            await _execute(OpenAIChatExecutor(_settings(), client=client))

    assert excinfo.value.status_code == 401
    assert calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", None])
async def test_empty_content_raises_empty_response(content: str | None) -> None:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json=_completion(content))
        )
    ) as client:
        with pytest.raises(EmptyResponseError):
            await _execute(OpenAIChatExecutor(_settings(), client=client))


@pytest.mark.asyncio
async def test_missing_choices_raise_upstream_error() -> None:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"id": "x"}))
    ) as client:
        with pytest.raises(UpstreamError, match="missing message content"):
            await _execute(OpenAIChatExecutor(_settings(), client=client))


@pytest.mark.asyncio
async def test_non_json_body_raises_upstream_error() -> None:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    ) as client:
        with pytest.raises(UpstreamError, match="invalid JSON"):
            await _execute(OpenAIChatExecutor(_settings(), client=client))
