"""Small in-memory TTL cache used for per-session lookups."""

from __future__ import annotations

import hashlib
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

LOGGER = logging.getLogger(__name__)


class CacheEntry:
    """Cache entry with expiration time."""

    def __init__(self, value: Any, ttl_seconds: int = 300) -> None:
        """Initialize cache entry with value and TTL."""
        self.value = value
        self.expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)

    def is_expired(self) -> bool:
        """Check if cache entry has expired."""
        return datetime.now(tz=UTC) > self.expires_at


class SimpleCache:
    """In-memory cache with TTL expiry and a soft size bound.

    Not shared across processes. Writes are last-writer-wins per key.
    """

    def __init__(self, *, default_ttl_seconds: int = 300, max_entries: int = 1024) -> None:
        """Initialize empty cache."""
        self._cache: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl_seconds
        self._max_entries = max_entries

    def get(self, key: str) -> Any | None:
        """Get cached value if not expired."""
        entry = self._cache.get(key)
        if entry and not entry.is_expired():
            LOGGER.debug("Cache hit for key: %s", key)
            return entry.value

        if entry:
            LOGGER.debug("Cache expired for key: %s", key)
            del self._cache[key]

        LOGGER.debug("Cache miss for key: %s", key)
        return None

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Set cache value with TTL."""
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if key not in self._cache and len(self._cache) >= self._max_entries:
            if not self.cleanup_expired():
                oldest = min(self._cache, key=lambda item: self._cache[item].expires_at)
                del self._cache[oldest]
        self._cache[key] = CacheEntry(value, ttl)
        LOGGER.debug("Cache set for key: %s (TTL: %ds)", key, ttl)

    def cleanup_expired(self) -> int:
        """Remove all expired entries."""
        expired_keys = [key for key, entry in self._cache.items() if entry.is_expired()]
        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            LOGGER.debug("Cleaned up %d expired cache entries", len(expired_keys))

        return len(expired_keys)

    @staticmethod
    def make_key(*parts: str | int | None) -> str:
        """Hash ``parts`` into a fixed-length key so raw values are not kept."""
        combined = "|".join(str(p) if p is not None else "None" for p in parts)
        return hashlib.sha256(combined.encode("utf-8")).hexdigest()


__all__ = ["SimpleCache"]
