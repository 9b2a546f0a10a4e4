"""Security response headers for the API and bundled client."""

from __future__ import annotations

from dataclasses import dataclass, field

from starlette.responses import Response

DEFAULT_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
}


@dataclass(slots=True)
class SecurityHeaders:
    """Attach a fixed set of hardening headers to every response."""

    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))

    def apply(self, response: Response) -> Response:
        """Set each header unless the endpoint already chose a value."""
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


__all__ = ["DEFAULT_HEADERS", "SecurityHeaders"]
