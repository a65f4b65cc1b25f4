# src/cache/memory_store.py — v2
"""In-process cache tier.

Fast, synchronous and lost on restart. Backed by ``cachetools.TTLCache``:
entries expire ``ttl_seconds`` after they were written, and when the store
is full the least recently used entry is evicted.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from cachetools import TTLCache


class MemoryCacheStore:
    """Bounded fingerprint -> result mapping with per-entry TTL."""

    def __init__(
        self,
        ttl_seconds: float = 24 * 60 * 60,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl = ttl_seconds
        self._cache: TTLCache[str, str] = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=clock
        )
        # TTLCache is not thread-safe.
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        """Number of live (unexpired) entries."""
        with self._lock:
            self._cache.expire()
            return len(self._cache)

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> str | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._cache[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()
