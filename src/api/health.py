# src/api/health.py — v1
"""Health report: shared-tier connectivity and cache effectiveness."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from autopost.api.models import (
    CleanupHealth,
    CostOptimizationHealth,
    HealthReport,
    RedisHealth,
)
from autopost.version import __version__

if TYPE_CHECKING:
    from autopost.cache.base_cache_store import BaseCacheStore
    from autopost.config.settings import Settings
    from autopost.tracking.cost_tracker import CostTracker

logger = logging.getLogger(__name__)


async def build_health_report(
    settings: Settings,
    tracker: CostTracker,
    shared_store: BaseCacheStore | None = None,
    pending_cleanups: int = 0,
) -> HealthReport:
    """Assemble the health report.

    Args:
        settings: Application settings.
        tracker: Counters to report on.
        shared_store: Shared tier to ping. None = memory-only ("fallback").
        pending_cleanups: Cleanup jobs waiting for their delay.

    Returns:
        HealthReport; ``status_code`` is 200 when Redis answers and cost
        tracking is enabled, 206 otherwise.
    """
    redis = await _redis_health(shared_store)
    stats = tracker.snapshot()

    cost = CostOptimizationHealth(
        enabled=settings.cost_tracking_enabled,
        cache_hit_rate=f"{stats.hit_rate}%",
        total_requests=stats.total_requests,
        estimated_savings=f"${stats.estimated_cost_saved:.2f}",
        performance="optimal" if stats.is_optimal else "needs_improvement",
        recommendation=stats.recommendation,
    )

    return HealthReport(
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        redis=redis,
        cost_optimization=cost,
        cleanup=CleanupHealth(
            enabled=settings.cleanup_enabled,
            max_storage_days=settings.cleanup_max_storage_days,
            pending_jobs=pending_cleanups,
        ),
        ready_for_production=(
            redis.status == "connected" and settings.cost_tracking_enabled
        ),
    )


async def _redis_health(shared_store: BaseCacheStore | None) -> RedisHealth:
    if shared_store is None:
        return RedisHealth(available=False, backend="none", status="fallback")
    connected = await shared_store.ping()
    if not connected:
        logger.warning("Shared cache tier unreachable")
    return RedisHealth(
        available=True,
        backend=shared_store.backend_name,
        status="connected" if connected else "error",
    )
