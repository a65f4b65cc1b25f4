# src/api/facade.py — v1
"""Public API facade: one object wiring cache, tracker, cleanup and batching.

Usage:
    from autopost.api.facade import build_optimizer
    optimizer = build_optimizer()
    result = await optimizer.get_cost_optimized_analysis(images, analyze_fn)
    optimizer.schedule_image_cleanup(public_ids)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence, TypeVar

from autopost.api.health import build_health_report
from autopost.batch.processor import BatchProcessor
from autopost.cache.cache_factory import create_memory_store, create_shared_store
from autopost.cache.tiered_cache import ComputeFn, TieredAnalysisCache
from autopost.cleanup.scheduler import CleanupScheduler, DeleteFn, HttpDeleteClient
from autopost.config.settings import Settings
from autopost.tracking.cost_tracker import CostTracker

if TYPE_CHECKING:
    import asyncio

    from autopost.api.models import HealthReport
    from autopost.cache.base_cache_store import BaseCacheStore
    from autopost.cache.memory_store import MemoryCacheStore
    from autopost.tracking.models import OptimizationStats

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class CostOptimizer:
    """Entry point used by request handlers."""

    def __init__(
        self,
        settings: Settings,
        cache: TieredAnalysisCache,
        cleanup: CleanupScheduler,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._cleanup = cleanup

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> TieredAnalysisCache:
        return self._cache

    @property
    def tracker(self) -> CostTracker:
        return self._cache.tracker

    @property
    def cleanup(self) -> CleanupScheduler:
        return self._cleanup

    async def get_cost_optimized_analysis(
        self, image_buffers: Sequence[bytes], compute_fn: ComputeFn
    ) -> str:
        """Serve the analysis from cache, or compute and cache it."""
        return await self._cache.resolve(image_buffers, compute_fn)

    def schedule_image_cleanup(
        self, public_ids: Sequence[str], delay_minutes: float | None = None
    ) -> asyncio.Task[None] | None:
        """Delete uploaded images after delay_minutes (configured default if None)."""
        if delay_minutes is None:
            delay_minutes = self._settings.cleanup_default_delay_minutes
        return self._cleanup.schedule_cleanup(public_ids, delay_minutes)

    def create_batch_processor(
        self,
        processor: Callable[[list[T]], Awaitable[Sequence[R]]],
        batch_size: int | None = None,
        delay_ms: float | None = None,
    ) -> BatchProcessor[T, R]:
        """BatchProcessor with the configured size and delay as defaults."""
        return BatchProcessor(
            processor,
            batch_size=self._settings.batch_size if batch_size is None else batch_size,
            delay_ms=self._settings.batch_delay_ms if delay_ms is None else delay_ms,
        )

    def optimization_stats(self) -> OptimizationStats:
        return self.tracker.snapshot()

    async def health(self) -> HealthReport:
        return await build_health_report(
            self._settings,
            self.tracker,
            self._cache.shared_store,
            pending_cleanups=self._cleanup.pending_count,
        )

    async def close(self) -> None:
        """Drop pending cleanups and close the shared tier."""
        await self._cleanup.shutdown()
        shared = self._cache.shared_store
        if shared is not None:
            await shared.close()


def build_optimizer(
    settings: Settings | None = None,
    shared_store: BaseCacheStore | None = None,
    memory_store: MemoryCacheStore | None = None,
    delete_fn: DeleteFn | None = None,
) -> CostOptimizer:
    """Build a CostOptimizer from settings.

    Args:
        settings: Global settings. Loaded from .env if None.
        shared_store: Shared tier. Built from settings if None.
        memory_store: In-process tier. Built from settings if None.
        delete_fn: Image deletion callable. HTTP endpoint if None.
    """
    settings = settings or Settings()
    if shared_store is None:
        shared_store = create_shared_store(settings)

    tracker = CostTracker(
        cost_per_call=settings.cost_per_ai_call,
        log_interval=settings.cost_log_interval,
        logging_enabled=settings.cost_tracking_enabled,
        optimal_hit_rate=settings.cost_optimal_hit_rate,
    )
    cache = TieredAnalysisCache(
        memory_store=memory_store or create_memory_store(settings),
        shared_store=shared_store,
        tracker=tracker,
        shared_ttl_seconds=settings.cache_ttl_seconds,
        single_flight=settings.cache_single_flight,
    )
    cleanup = CleanupScheduler(
        delete_fn=delete_fn or HttpDeleteClient(
            settings.cleanup_endpoint_url,
            timeout_s=settings.cleanup_timeout_seconds,
        ),
        enabled=settings.cleanup_enabled,
        max_storage_days=settings.cleanup_max_storage_days,
    )

    logger.info(
        "Cost optimizer ready: shared tier=%s, single_flight=%s, cleanup=%s",
        shared_store.backend_name if shared_store else "none",
        settings.cache_single_flight,
        settings.cleanup_enabled,
    )
    return CostOptimizer(settings, cache, cleanup)
