# src/cache/cache_factory.py — v1
"""Factories for the two cache tiers."""

from __future__ import annotations

from autopost.cache.base_cache_store import BaseCacheStore
from autopost.cache.memory_store import MemoryCacheStore
from autopost.config.settings import Settings


def create_memory_store(settings: Settings | None = None) -> MemoryCacheStore:
    """Instantiate the in-process tier with the configured soft TTL."""
    if settings is None:
        return MemoryCacheStore()
    return MemoryCacheStore(
        ttl_seconds=settings.memory_cache_ttl_seconds,
        max_entries=settings.memory_cache_max_entries,
    )


def create_shared_store(settings: Settings | None = None) -> BaseCacheStore | None:
    """Instantiate the configured shared tier.

    Args:
        settings: Application settings. Defaults to memory-only mode.

    Returns:
        Configured BaseCacheStore, or None when only the in-process tier
        is used (CACHE_BACKEND=memory).
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        return None

    if backend == "redis":
        from autopost.cache.redis_store import RedisCacheStore
        if settings is None or not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(
            redis_url=settings.cache_redis_url,
            key_prefix=settings.cache_key_prefix,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")
