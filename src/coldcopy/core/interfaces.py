"""Protocol interfaces and error types shared by the generation pipeline."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol


class ColdCopyError(RuntimeError):
    """Base class for failures raised while generating an email."""


class ValidationError(ColdCopyError):
    """Raised when a request is missing fields or carries invalid values."""

    def __init__(
        self,
        message: str,
        *,
        field_errors: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.field_errors: dict[str, list[str]] = {
            key: list(value) for key, value in (field_errors or {}).items()
        }


class ParseError(ColdCopyError):
    """Raised when stage output cannot be read as the expected structure."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage


class EmptyResponseError(ColdCopyError):
    """Raised when a stage call returns no usable content."""

    def __init__(self, stage: str) -> None:
        super().__init__(f"Empty response at stage {stage}")
        self.stage = stage


class UpstreamError(ColdCopyError):
    """Raised when an external provider is unreachable or rejects a call."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StageExecutor(Protocol):
    """Capability that turns a system/user prompt pair into raw text."""

    @property
    def provider_id(self) -> str:
        """Identifier describing the backing model/provider."""
        raise NotImplementedError

    async def execute(
        self,
        *,
        stage: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> str:
        """Return the raw completion text for one stage call."""
        raise NotImplementedError


__all__ = [
    "ColdCopyError",
    "EmptyResponseError",
    "ParseError",
    "StageExecutor",
    "UpstreamError",
    "ValidationError",
]
