"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid at startup."""


class LlmSettings(BaseModel):
    """Settings for the OpenAI-compatible chat completion provider."""

    api_key: str = Field(min_length=10, description="Provider API credential")
    model: str = Field(default="gpt-4o-mini", description="Model identifier")
    base_url: str = Field(
        default="https://api.openai.com/v1", description="Chat completion API root"
    )
    timeout_seconds: float = Field(
        default=60.0, gt=0, description="Request timeout for a single stage call"
    )
    max_retries: int = Field(
        default=2, ge=0, description="Retries for transient provider failures"
    )


class ServerSettings(BaseModel):
    """Settings for the HTTP server."""

    host: str = Field(default="127.0.0.1", description="Listening interface")
    port: int = Field(default=4000, ge=1, le=65535, description="Listening port")
    static_dir: Path | None = Field(
        default=None, description="Directory holding the built browser client"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed CORS origins"
    )


class SuggestionSettings(BaseModel):
    """Settings for the optional lead-suggestion provider."""

    url: str | None = Field(default=None, description="Suggestion provider URL")
    api_key: str | None = Field(default=None, description="Provider credential")
    timeout_seconds: float = Field(default=10.0, gt=0)
    cache_ttl_seconds: int = Field(
        default=900, ge=1, description="How long a session's last response is kept"
    )


class BatchSettings(BaseModel):
    """Settings bounding batch generation."""

    max_concurrency: int = Field(
        default=4, ge=1, description="Entries generated at the same time"
    )
    max_entries: int | None = Field(
        default=None, ge=1, description="Optional cap on entries per request"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Use the pipe-delimited structured text format"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    llm: LlmSettings
    server: ServerSettings = Field(default_factory=ServerSettings)
    suggestions: SuggestionSettings = Field(default_factory=SuggestionSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "COLDCOPY_"
DEFAULT_ENV_FILE = Path(".env")
ENV_FILE_OVERRIDE_VAR = "COLDCOPY_ENV_FILE"


def resolve_env_file() -> Path:
    """Return the env file named by ``COLDCOPY_ENV_FILE`` or ``.env`` in the cwd."""
    override = os.getenv(ENV_FILE_OVERRIDE_VAR)
    if override:
        return Path(override)
    return DEFAULT_ENV_FILE


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        if key == ENV_FILE_OVERRIDE_VAR:
            continue
        path = _normalize_key(key)
        if not path:
            continue
        if value is None or (isinstance(value, str) and value.strip() == ""):
            continue
        normalized_value: Any = value
        lowercase_value = value.lower()
        if lowercase_value == "true":
            normalized_value = True
        elif lowercase_value == "false":
            normalized_value = False
        elif path[-1] == "cors_origins":
            normalized_value = [
                origin.strip() for origin in value.split(",") if origin.strip()
            ]
        _merge_into_tree(collected, path, normalized_value)

    return collected


def _describe_errors(exc: ValidationError) -> str:
    lines = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        env_name = ENV_PREFIX + "__".join(str(part).upper() for part in error["loc"])
        lines.append(f"  {location} ({env_name}): {error['msg']}")
    return "Invalid configuration:\n" + "\n".join(lines)


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    *,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides.

    Without an explicit ``env_file`` the file from ``resolve_env_file`` is read
    when it exists.

    Raises ``ConfigurationError`` when the merged values do not validate, most
    commonly because ``COLDCOPY_LLM__API_KEY`` is absent.
    """
    collected = _collect_env_values(
        env_file if env_file is not None else resolve_env_file(),
        include_environment=include_environment,
    )
    if overrides:
        collected.update(overrides)
    collected.setdefault("llm", {})
    try:
        return AppSettings.model_validate(collected)
    except ValidationError as exc:
        raise ConfigurationError(_describe_errors(exc)) from exc


__all__ = [
    "AppSettings",
    "BatchSettings",
    "ConfigurationError",
    "DEFAULT_ENV_FILE",
    "ENV_FILE_OVERRIDE_VAR",
    "ENV_PREFIX",
    "LlmSettings",
    "LoggingSettings",
    "ServerSettings",
    "SuggestionSettings",
    "load_app_settings",
    "resolve_env_file",
]
