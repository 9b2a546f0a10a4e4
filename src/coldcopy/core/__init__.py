"""Core utilities for configuration, logging, and shared contracts."""

from .config import AppSettings, ConfigurationError, load_app_settings
from .interfaces import (
    ColdCopyError,
    EmptyResponseError,
    ParseError,
    StageExecutor,
    UpstreamError,
    ValidationError,
)
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "ColdCopyError",
    "ConfigurationError",
    "EmptyResponseError",
    "ParseError",
    "StageExecutor",
    "UpstreamError",
    "ValidationError",
    "configure_logging",
    "load_app_settings",
]
