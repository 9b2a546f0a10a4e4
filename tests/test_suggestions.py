"""Tests for the lead-suggestion lookup."""

from __future__ import annotations

import json

import httpx
import pytest

from coldcopy.core.config import SuggestionSettings
from coldcopy.intelligence.suggestions import (
    FALLBACK_SUGGESTIONS,
    SuggestionService,
    normalize_suggestion,
)

PROVIDER_URL = "https://serp.local/search"


@pytest.mark.asyncio
async def test_unconfigured_provider_returns_fallback() -> None:
    service = SuggestionService(SuggestionSettings())

    response = await service.suggest("compliance", "TestCo", "metrics please")
    await service.aclose()

    assert response.fallback is True
    assert response.suggestions == FALLBACK_SUGGESTIONS
    assert response.query == "compliance"
    assert response.to_dict()["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_configured_provider_is_called_and_normalised() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            json={
                "source": "serp",
                "suggestions": [
                    {"name": "Test Scout", "role": "Compliance Lead", "detail": "Detail"},
                    {"type": "metric", "summary": "Half of teams", "metrics": ["50%", 7]},
                ],
            },
        )

    settings = SuggestionSettings(url=PROVIDER_URL, api_key="serp-key")
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = SuggestionService(settings, client=client)
        response = await service.suggest(
            "compliance", "TestCo", "metrics please", ["kyc"]
        )

    request = captured[0]
    assert str(request.url) == PROVIDER_URL
    assert request.headers["x-api-key"] == "serp-key"
    assert json.loads(request.content) == {
        "query": "compliance",
        "company": "TestCo",
        "context": "metrics please",
        "keywords": ["kyc"],
    }
    assert response.fallback is False
    assert response.source == "serp"
    first, second = response.suggestions
    assert first.type == "concept"
    assert first.name == "Test Scout"
    assert second.type == "metric"
    assert second.detail == "Half of teams"
    assert second.metrics == ("50%",)


@pytest.mark.asyncio
async def test_provider_failure_degrades_to_fallback() -> None:
    settings = SuggestionSettings(url=PROVIDER_URL)
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(500))
    ) as client:
        service = SuggestionService(settings, client=client)
        response = await service.suggest("compliance", "TestCo", "metrics please")

    assert response.fallback is True
    assert response.suggestions == FALLBACK_SUGGESTIONS


@pytest.mark.asyncio
async def test_empty_provider_list_uses_fallback_entries() -> None:
    settings = SuggestionSettings(url=PROVIDER_URL)
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"suggestions": []})
        )
    ) as client:
        service = SuggestionService(settings, client=client)
        response = await service.suggest("compliance", "TestCo", "metrics please")

    assert response.fallback is False
    assert response.suggestions == FALLBACK_SUGGESTIONS


@pytest.mark.asyncio
async def test_latest_response_is_scoped_per_session() -> None:
    service = SuggestionService(SuggestionSettings())

    await service.suggest("first query", "TestCo", "metrics please", session_id="alice")
    await service.suggest("second query", "TestCo", "metrics please", session_id="bob")

    assert service.latest("alice").query == "first query"
    assert service.latest("bob").query == "second query"
    unknown = service.latest("carol")
    assert unknown.fallback is True
    assert unknown.query is None
    await service.aclose()


def test_normalize_suggestion_defaults_unknown_fields() -> None:
    suggestion = normalize_suggestion({"type": "rumour", "angles": "not-a-list"})

    assert suggestion.type == "concept"
    assert suggestion.detail == ""
    assert suggestion.angles is None
