# src/cache/base_cache_store.py — v1
"""Abstract interface for the shared (cross-process) cache tier."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseCacheStore(ABC):
    """Durable key/value tier holding analysis results with a TTL.

    ``get`` returns None on a missing key. Transport failures may raise;
    the tiered cache treats them as a miss.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Retrieve a cached result by fingerprint."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a result that expires after ttl_seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a cached result."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backend is reachable. Never raises."""

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""

    @property
    def backend_name(self) -> str:
        return type(self).__name__
