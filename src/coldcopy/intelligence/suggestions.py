"""Lead-suggestion lookup against an optional external provider."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from coldcopy.core.cache import SimpleCache
from coldcopy.core.config import SuggestionSettings
from coldcopy.core.datetime_utils import utc_now
from coldcopy.core.interfaces import UpstreamError
from coldcopy.core.models import SearchSuggestion, SuggestionResponse, SuggestionType

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION = "anonymous"
_SUGGESTION_TYPES: tuple[SuggestionType, ...] = ("person", "concept", "metric")

FALLBACK_SUGGESTIONS: tuple[SearchSuggestion, ...] = (
    SearchSuggestion(
        type="person",
        name="Anika Li",
        role="Revenue Operations Lead",
        detail="Designs compliance-ready deliverability programs for fintech founders.",
        angles=("value: reduce reporting time", "curiosity: board-ready inbox stats"),
    ),
    SearchSuggestion(
        type="concept",
        detail=(
            "Many compliance teams cite Gmail filtering as their biggest blocker "
            "for scaling demos."
        ),
        metrics=("78% of Revenue Ops execs cite deliverability as a blocker",),
        angles=("social: peers finally automate compliance proofs",),
    ),
    SearchSuggestion(
        type="metric",
        detail="Boards demand a 2x reduction in inbox work to justify pipeline spend.",
        context="Use this to highlight ROI/efficiency angles.",
    ),
)


def _optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _text_list(value: Any) -> tuple[str, ...] | None:
    if not isinstance(value, list):
        return None
    return tuple(item for item in value if isinstance(item, str))


def normalize_suggestion(raw: Mapping[str, Any]) -> SearchSuggestion:
    """Coerce a provider record into a ``SearchSuggestion``."""
    raw_type = raw.get("type")
    suggestion_type: SuggestionType = (
        raw_type if raw_type in _SUGGESTION_TYPES else "concept"
    )
    detail = raw.get("detail")
    if not isinstance(detail, str):
        detail = raw.get("summary") if isinstance(raw.get("summary"), str) else ""
    return SearchSuggestion(
        type=suggestion_type,
        detail=detail,
        name=_optional_text(raw.get("name")),
        role=_optional_text(raw.get("role")),
        source=_optional_text(raw.get("source")),
        metrics=_text_list(raw.get("metrics")),
        angles=_text_list(raw.get("angles")),
        context=_optional_text(raw.get("context")),
    )


class SuggestionService:
    """Query the configured provider and degrade to a static list on failure.

    The most recent response is remembered per session id, so concurrent
    callers never read each other's suggestions.
    """

    def __init__(
        self,
        settings: SuggestionSettings,
        *,
        client: httpx.AsyncClient | None = None,
        cache: SimpleCache | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.timeout_seconds)
        self._owns_client = client is None
        self._latest = cache or SimpleCache(
            default_ttl_seconds=settings.cache_ttl_seconds
        )

    @property
    def configured(self) -> bool:
        return bool(self._settings.url)

    async def suggest(
        self,
        query: str,
        company: str,
        context: str,
        keywords: Sequence[str] = (),
        *,
        session_id: str = DEFAULT_SESSION,
    ) -> SuggestionResponse:
        """Return suggestions for the query, falling back when needed."""
        url = self._settings.url
        if not url:
            response = _fallback_response(query=query)
        else:
            try:
                suggestions, source = await self._fetch(
                    url,
                    {
                        "query": query,
                        "company": company,
                        "context": context,
                        "keywords": list(keywords),
                    },
                )
            except UpstreamError as exc:
                LOGGER.warning("Suggestion provider failed, using fallback: %s", exc)
                response = _fallback_response()
            else:
                response = SuggestionResponse(
                    suggestions=suggestions or FALLBACK_SUGGESTIONS,
                    timestamp=utc_now(),
                    fallback=False,
                    source=source,
                    query=query,
                )
        self._latest.set(SimpleCache.make_key("latest", session_id), response)
        return response

    def latest(self, session_id: str = DEFAULT_SESSION) -> SuggestionResponse:
        """Return the last response for ``session_id`` or a fresh fallback."""
        cached = self._latest.get(SimpleCache.make_key("latest", session_id))
        if isinstance(cached, SuggestionResponse):
            return cached
        return _fallback_response()

    async def _fetch(
        self, url: str, payload: dict[str, Any]
    ) -> tuple[tuple[SearchSuggestion, ...], str | None]:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers["x-api-key"] = self._settings.api_key
        try:
            response = await self._client.post(
                url,
                json=payload,
                headers=headers,
                timeout=self._settings.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Suggestion provider unreachable: {exc}") from exc
        if response.is_error:
            raise UpstreamError(
                f"Suggestion provider responded with {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise UpstreamError("Suggestion provider returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise UpstreamError("Suggestion provider returned an unexpected payload")

        raw_items = data.get("suggestions")
        suggestions: tuple[SearchSuggestion, ...] = ()
        if isinstance(raw_items, list):
            suggestions = tuple(
                normalize_suggestion(item) for item in raw_items if isinstance(item, dict)
            )
        source = data.get("source")
        return suggestions, source if isinstance(source, str) else None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _fallback_response(*, query: str | None = None) -> SuggestionResponse:
    return SuggestionResponse(
        suggestions=FALLBACK_SUGGESTIONS,
        timestamp=utc_now(),
        fallback=True,
        query=query,
    )


__all__ = [
    "DEFAULT_SESSION",
    "FALLBACK_SUGGESTIONS",
    "SuggestionService",
    "normalize_suggestion",
]
