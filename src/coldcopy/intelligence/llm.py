"""LLM client used to execute pipeline stages."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from coldcopy.core.config import LlmSettings
from coldcopy.core.interfaces import EmptyResponseError, UpstreamError

LOGGER = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({408, 409, 429, 500, 502, 503, 504})


class OpenAIChatExecutor:
    """Async stage executor for OpenAI-compatible chat completion APIs."""

    def __init__(
        self,
        settings: LlmSettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Bind the executor to ``settings``; ``client`` is borrowed if given."""
        self._settings = settings
        self._client = client or httpx.AsyncClient(
            timeout=settings.timeout_seconds
        )
        self._owns_client = client is None
        self._endpoint = _resolve_endpoint(settings.base_url)

    @property
    def provider_id(self) -> str:
        """Return a human readable identifier for the configured model."""
        return f"openai:{self._settings.model}"

    async def execute(
        self,
        *,
        stage: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> str:
        """Send one chat completion request and return the trimmed content."""
        payload: dict[str, Any] = {
            "model": self._settings.model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {self._settings.api_key}"}
        attempts = self._settings.max_retries + 1
        last_error: Exception | None = None
        data: Any = None
        received = False

        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.post(
                    self._endpoint,
                    json=payload,
                    headers=headers,
                    timeout=self._settings.timeout_seconds,
                )
                response.raise_for_status()
                data = response.json()
                received = True
                break
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                if status_code not in _RETRYABLE_STATUS:
                    raise UpstreamError(
                        f"LLM provider responded with {status_code} at stage {stage}",
                        status_code=status_code,
                    ) from exc
                last_error = exc
            except httpx.HTTPError as exc:
                last_error = exc
            except json.JSONDecodeError as exc:
                raise UpstreamError(
                    f"LLM returned invalid JSON at stage {stage}"
                ) from exc

            LOGGER.warning(
                "Stage %s attempt %d/%d failed: %s", stage, attempt, attempts, last_error
            )
            if attempt < attempts:
                await asyncio.sleep(min(2**attempt, 8))

        if not received:
            raise UpstreamError(
                f"LLM request failed after {attempts} attempt(s) at stage {stage}"
            ) from last_error

        content = _extract_content(data)
        if content is None:
            raise UpstreamError(f"LLM response missing message content at stage {stage}")
        content = content.strip()
        if not content:
            raise EmptyResponseError(stage)
        return content

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this executor created it."""
        if self._owns_client:
            await self._client.aclose()


def _extract_content(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if content is None:
        return ""
    return content if isinstance(content, str) else None


def _resolve_endpoint(base_url: str) -> str:
    return base_url.rstrip("/") + "/chat/completions"


__all__ = ["OpenAIChatExecutor"]
