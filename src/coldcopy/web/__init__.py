"""Web application entry point for ColdCopy."""

from .app import create_app

__all__ = ["create_app"]
