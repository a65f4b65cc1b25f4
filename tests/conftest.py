# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample image buffers, an in-memory shared tier, tracker and
counting compute functions. No external services: all I/O is faked.
"""

from __future__ import annotations

import pytest

from autopost.cache.base_cache_store import BaseCacheStore
from autopost.cache.memory_store import MemoryCacheStore
from autopost.tracking.cost_tracker import CostTracker


# === FAKES ===


class FakeSharedStore(BaseCacheStore):
    """Dict-backed shared tier recording TTLs; can be told to fail."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail_get = False
        self.fail_set = False
        self.reachable = True
        self.get_calls = 0
        self.set_calls = 0
        self.closed = False

    async def get(self, key: str) -> str | None:
        self.get_calls += 1
        if self.fail_get:
            raise ConnectionError("shared tier unreachable")
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise ConnectionError("shared tier unreachable")
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)

    async def ping(self) -> bool:
        return self.reachable

    async def close(self) -> None:
        self.closed = True

    @property
    def backend_name(self) -> str:
        return "fake"


class CountingCompute:
    """Async compute function returning "<prefix>-<n>" for the n-th call."""

    def __init__(self, prefix: str = "analysis-result", error: Exception | None = None) -> None:
        self.prefix = prefix
        self.error = error
        self.calls: list[list[bytes]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def __call__(self, buffers: list[bytes]) -> str:
        self.calls.append(buffers)
        if self.error is not None:
            raise self.error
        return f"{self.prefix}-{len(self.calls)}"


# === FIXTURES: Sample images ===


def make_image(size: int, seed: int = 0) -> bytes:
    """Deterministic pseudo-image bytes of the given size."""
    return bytes((i * 31 + seed * 17 + (i >> 8)) % 256 for i in range(size))


@pytest.fixture
def image_a() -> bytes:
    """5 KB image: head, middle and tail all contribute to the signature."""
    return make_image(5 * 1024, seed=1)


@pytest.fixture
def image_b() -> bytes:
    """3 KB image: head and tail only."""
    return make_image(3 * 1024, seed=2)


# === FIXTURES: Cache collaborators ===


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    return MemoryCacheStore(ttl_seconds=60.0, max_entries=100)


@pytest.fixture
def shared_store() -> FakeSharedStore:
    return FakeSharedStore()


@pytest.fixture
def tracker() -> CostTracker:
    return CostTracker(logging_enabled=False)


@pytest.fixture
def compute() -> CountingCompute:
    return CountingCompute()


@pytest.fixture
def failing_compute() -> CountingCompute:
    return CountingCompute(error=RuntimeError("AI service unavailable"))


@pytest.fixture
def image_factory():
    """make_image(size, seed) for tests that need more than two images."""
    return make_image


@pytest.fixture
def shared_store_factory():
    """Build extra FakeSharedStore instances."""
    return FakeSharedStore
