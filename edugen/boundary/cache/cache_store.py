"""
Cache store contract and in-memory backend.

The RAG engine caches serialized answers as strings under opaque keys
with a TTL. The in-memory backend serves development and tests: a
cachetools time-aware LRU cache where every entry carries the TTL it
was stored with.

Dependencies: cachetools
System role: RAG result cache
"""

import time
from collections.abc import Callable
from typing import Protocol

from cachetools import TLRUCache


class CacheStore(Protocol):
    """Async key/value cache with per-entry TTL."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def flush(self) -> int: ...

    async def close(self) -> None: ...


def _entry_expiry(key: str, entry: tuple[str, float], now: float) -> float:
    """Time-to-use for TLRUCache: entries are stored as (value, ttl_seconds)."""
    return now + entry[1]


class InMemoryCacheStore:
    """Process-local TTL + LRU cache."""

    def __init__(
        self,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize in-memory cache.

        Args:
            max_entries: Capacity before least recently used entries are evicted
            clock: Monotonic time source (injectable for tests)
        """
        self._cache: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_entry_expiry, timer=clock)

    async def get(self, key: str) -> str | None:
        self._cache.expire()
        entry = self._cache.get(key)
        if entry is None:
            return None
        return entry[0]

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        # A non-positive TTL is never stored by TLRUCache; drop any older entry too.
        self._cache.pop(key, None)
        self._cache[key] = (value, float(ttl_seconds))

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def flush(self) -> int:
        """Remove every entry; returns how many were removed."""
        self._cache.expire()
        removed = len(self._cache)
        self._cache.clear()
        return removed

    async def close(self) -> None:
        return None

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)
