# src/cache/redis_store.py — v1
"""Redis-backed shared cache tier (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Survives process restarts and is shared by every app instance.
"""

from __future__ import annotations

import logging

from autopost.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "autopost:analysis:"


class RedisCacheStore(BaseCacheStore):
    """Shared tier on Redis; every value is a plain string with an expiry."""

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        socket_timeout: float | None = 5.0,
    ) -> None:
        try:
            import redis.asyncio as aioredis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = aioredis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
        )
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> str | None:
        """Retrieve a cached result. Connection errors propagate."""
        return await self._client.get(self._key(key))

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a result with SET ... EX ttl_seconds."""
        await self._client.set(self._key(key), value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        """Remove a cached result."""
        await self._client.delete(self._key(key))

    async def ping(self) -> bool:
        """PING the server; any error counts as unreachable."""
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()

    @property
    def backend_name(self) -> str:
        return "redis"
