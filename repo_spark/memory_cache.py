"""
In-process TTL cache for upstream API responses.

One instance is constructed per process and handed to the providers that use
it; there is no module-level instance.
"""

import threading
import time
from typing import Any, Callable, NamedTuple

from repo_spark.config import DEFAULT_API_CACHE_TTL


class _CacheEntry(NamedTuple):
    data: Any
    stored_at: float
    ttl: float


class MemoryCache:
    """Thread-safe key/value cache with per-entry expiry and hit statistics."""

    def __init__(
        self,
        default_ttl: float = DEFAULT_API_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            default_ttl: Lifetime in seconds for entries stored without a ttl.
            clock: Source of monotonic time, injectable for tests.
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._evictions = 0

    def _expired(self, entry: _CacheEntry, now: float) -> bool:
        return now - entry.stored_at > entry.ttl

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        with self._lock:
            self._entries[key] = _CacheEntry(
                data, self._clock(), ttl if ttl is not None else self.default_ttl
            )
            self._sets += 1

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                self._evictions += 1
                self._misses += 1
                return None
            self._hits += 1
            return entry.data

    def has(self, key: str) -> bool:
        """Check for a live entry without touching hit/miss counters."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if self._expired(entry, self._clock()):
                del self._entries[key]
                self._evictions += 1
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items() if self._expired(entry, now)
            ]
            for key in expired:
                del self._entries[key]
            self._evictions += len(expired)
            return len(expired)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "sets": self._sets,
                "evictions": self._evictions,
                "size": len(self._entries),
                "hitRate": self._hits / lookups if lookups else 0,
            }
