# src/cache/tiered_cache.py — v2
"""Tiered analysis cache: in-process -> shared -> AI call.

Lookup order is strict and sequential for one call:
  1. Derive the fingerprint of the image sequence
  2. In-process tier (hit -> return)
  3. Shared tier (hit -> promote into in-process tier, return)
  4. Miss -> call the expensive compute function
  5. Write the result through to both tiers independently

Caching is best-effort: a failing tier is logged and treated as a miss or
a skipped write. Only errors raised by the compute function reach the
caller, unchanged and never cached.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence

from autopost.cache.fingerprint import derive_fingerprint, short_fingerprint
from autopost.cache.models import TierLookup
from autopost.logging.context import reset_fingerprint_context, set_fingerprint_context
from autopost.tracking.cost_tracker import CostTracker

if TYPE_CHECKING:
    from autopost.cache.base_cache_store import BaseCacheStore
    from autopost.cache.memory_store import MemoryCacheStore

logger = logging.getLogger(__name__)

ComputeFn = Callable[[list[bytes]], Awaitable[str]]

DEFAULT_SHARED_TTL_SECONDS = 30 * 24 * 60 * 60


class TieredAnalysisCache:
    """Cache in front of a paid image-analysis call.

    Args:
        memory_store: In-process tier.
        shared_store: Shared tier. None = memory-only mode.
        tracker: Hit/miss accounting. A private tracker is created if None.
        shared_ttl_seconds: Expiry of shared-tier entries.
        single_flight: When True, concurrent misses on the same fingerprint
            share one computation instead of each calling compute_fn. If the
            leading caller is cancelled, a waiting caller computes instead.
    """

    def __init__(
        self,
        memory_store: MemoryCacheStore,
        shared_store: BaseCacheStore | None = None,
        tracker: CostTracker | None = None,
        shared_ttl_seconds: int = DEFAULT_SHARED_TTL_SECONDS,
        single_flight: bool = False,
    ) -> None:
        self._memory = memory_store
        self._shared = shared_store
        self._tracker = tracker or CostTracker()
        self._shared_ttl = shared_ttl_seconds
        self._single_flight = single_flight
        self._in_flight: dict[str, asyncio.Future[str]] = {}

    @property
    def tracker(self) -> CostTracker:
        return self._tracker

    @property
    def memory_store(self) -> MemoryCacheStore:
        return self._memory

    @property
    def shared_store(self) -> BaseCacheStore | None:
        return self._shared

    async def resolve(
        self, buffers: Sequence[bytes], compute_fn: ComputeFn
    ) -> str:
        """Return the analysis for ``buffers``, calling compute_fn only on a miss.

        Args:
            buffers: Raw image bytes in upload order.
            compute_fn: Expensive analysis; receives the buffers as a list.

        Returns:
            Cached or freshly computed result.

        Raises:
            Whatever compute_fn raises.
        """
        images = list(buffers)
        fingerprint = derive_fingerprint(images)
        short = short_fingerprint(fingerprint)
        token = set_fingerprint_context(short)
        try:
            return await self._resolve(fingerprint, short, images, compute_fn)
        finally:
            reset_fingerprint_context(token)

    async def _resolve(
        self,
        fingerprint: str,
        short: str,
        images: list[bytes],
        compute_fn: ComputeFn,
    ) -> str:
        start = time.monotonic()
        logger.debug("Checking cache for %s... (%d images)", short, len(images))

        lookup = await self._lookup(fingerprint)
        if lookup.is_hit:
            self._record(hit=True)
            logger.info(
                "%s cache HIT %s (%.0fms)",
                lookup.hit_tier, short, (time.monotonic() - start) * 1000,
            )
            return lookup.value  # type: ignore[return-value]

        if self._single_flight:
            pending = self._in_flight.get(fingerprint)
            if pending is not None:
                self._record(hit=True)
                logger.info("Joining in-flight analysis for %s", short)
                return await self._join(fingerprint, short, pending, images, compute_fn)

        self._record(hit=False)
        logger.info(
            "Cache MISS %s, AI call required (%.0fms)",
            short, (time.monotonic() - start) * 1000,
        )

        if self._single_flight:
            return await self._compute_shared(fingerprint, images, compute_fn)
        return await self._compute(fingerprint, images, compute_fn)

    async def _lookup(self, fingerprint: str) -> TierLookup:
        """Walk the tiers in order; a failing tier counts as a miss."""
        try:
            value = self._memory.get(fingerprint)
        except Exception as e:
            logger.warning("Memory cache read failed: %s", e)
            value = None
        if value is not None:
            return TierLookup(hit_tier="memory", value=value)

        if self._shared is None:
            return TierLookup()

        try:
            value = await self._shared.get(fingerprint)
        except Exception as e:
            logger.warning("Shared cache read failed: %s", e)
            return TierLookup()
        if value is None:
            return TierLookup()

        # Promotion: future lookups in this process skip the shared tier.
        try:
            self._memory.set(fingerprint, value)
        except Exception as e:
            logger.warning("Memory cache promotion failed: %s", e)
        return TierLookup(hit_tier="shared", value=value)

    async def _compute(
        self, fingerprint: str, images: list[bytes], compute_fn: ComputeFn
    ) -> str:
        ai_start = time.monotonic()
        result = await compute_fn(images)
        logger.info(
            "AI analysis completed in %.0fms", (time.monotonic() - ai_start) * 1000
        )
        await self._write_through(fingerprint, result)
        return result

    async def _compute_shared(
        self, fingerprint: str, images: list[bytes], compute_fn: ComputeFn
    ) -> str:
        """Leader path of single-flight: publish the outcome to joiners."""
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._in_flight[fingerprint] = future
        try:
            result = await self._compute(fingerprint, images, compute_fn)
        except BaseException as e:
            if isinstance(e, asyncio.CancelledError):
                future.cancel()
            else:
                future.set_exception(e)
                # Mark retrieved so an unjoined failure is not reported twice.
                future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            if self._in_flight.get(fingerprint) is future:
                del self._in_flight[fingerprint]

    async def _join(
        self,
        fingerprint: str,
        short: str,
        pending: asyncio.Future[str],
        images: list[bytes],
        compute_fn: ComputeFn,
    ) -> str:
        """Await the leader's outcome; take over if the leader was cancelled."""
        while True:
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
            logger.info("In-flight analysis for %s was cancelled, taking over", short)
            next_pending = self._in_flight.get(fingerprint)
            if next_pending is None:
                return await self._compute_shared(fingerprint, images, compute_fn)
            pending = next_pending

    async def _write_through(self, fingerprint: str, result: str) -> None:
        """Populate both tiers; one failing write never blocks the other."""

        async def write_memory() -> None:
            self._memory.set(fingerprint, result)

        writes = [write_memory()]
        tiers = ["memory"]
        if self._shared is not None:
            writes.append(self._shared.set(fingerprint, result, self._shared_ttl))
            tiers.append("shared")

        outcomes = await asyncio.gather(*writes, return_exceptions=True)
        failed = False
        for tier, outcome in zip(tiers, outcomes):
            if isinstance(outcome, Exception):
                failed = True
                logger.warning("%s cache write failed: %s", tier, outcome)
        if not failed:
            logger.debug("Cached result %s for future use", short_fingerprint(fingerprint))

    def _record(self, hit: bool) -> None:
        try:
            if hit:
                self._tracker.record_hit()
            else:
                self._tracker.record_miss()
        except Exception as e:
            logger.warning("Cost tracking failed: %s", e)
