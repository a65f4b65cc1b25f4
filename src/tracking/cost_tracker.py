# src/tracking/cost_tracker.py — v2
"""Cache hit/miss accounting and estimated AI spend saved.

One tracker is owned per optimizer instance; tests build their own.
"""

from __future__ import annotations

import logging
import threading

from autopost.tracking.models import CostMetrics, OptimizationStats

logger = logging.getLogger(__name__)

DEFAULT_COST_PER_CALL = 0.01
DEFAULT_LOG_INTERVAL = 1000
DEFAULT_OPTIMAL_HIT_RATE = 90.0
TARGET_HIT_RATE = 95.0

RECOMMEND_IMPROVE = "Consider extending cache TTL or improving hash generation"
RECOMMEND_OK = "Optimization performing well!"


def _raw_hit_rate(cache_hits: int, total_requests: int) -> float:
    if total_requests <= 0:
        return 0.0
    return cache_hits / total_requests * 100


def compute_hit_rate(cache_hits: int, total_requests: int) -> float:
    """Hit rate in percent, rounded to one decimal. 0 when nothing was requested."""
    return round(_raw_hit_rate(cache_hits, total_requests), 1)


class CostTracker:
    """Thread-safe counters for cache lookups.

    Every ``log_interval``-th request emits the current stats at INFO when
    logging is enabled. Logging has no effect on the counters.
    """

    def __init__(
        self,
        cost_per_call: float = DEFAULT_COST_PER_CALL,
        log_interval: int = DEFAULT_LOG_INTERVAL,
        logging_enabled: bool = True,
        optimal_hit_rate: float = DEFAULT_OPTIMAL_HIT_RATE,
    ) -> None:
        if log_interval < 1:
            raise ValueError("log_interval must be >= 1")
        self._metrics = CostMetrics()
        self._cost_per_call = cost_per_call
        self._log_interval = log_interval
        self._logging_enabled = logging_enabled
        self._optimal_hit_rate = optimal_hit_rate
        self._lock = threading.Lock()

    def record_hit(self) -> None:
        """A lookup served from cache: one AI call saved."""
        with self._lock:
            m = self._metrics
            m.total_requests += 1
            m.cache_hits += 1
            m.ai_calls_saved += 1
            m.estimated_cost_saved += self._cost_per_call
            due = self._log_due()
        if due:
            self._log_stats()

    def record_miss(self) -> None:
        """A lookup that required the AI call."""
        with self._lock:
            self._metrics.total_requests += 1
            self._metrics.cache_misses += 1
            due = self._log_due()
        if due:
            self._log_stats()

    def metrics(self) -> CostMetrics:
        """Copy of the raw counters."""
        with self._lock:
            return self._metrics.model_copy()

    def snapshot(self) -> OptimizationStats:
        """Counters plus hit rate, optimality and a recommendation."""
        metrics = self.metrics()
        raw_rate = _raw_hit_rate(metrics.cache_hits, metrics.total_requests)
        # Optimality uses the unrounded rate; only the reported value is rounded.
        is_optimal = raw_rate >= self._optimal_hit_rate
        return OptimizationStats(
            **metrics.model_dump(),
            hit_rate=round(raw_rate, 1),
            is_optimal=is_optimal,
            recommendation=RECOMMEND_OK if is_optimal else RECOMMEND_IMPROVE,
        )

    def _log_due(self) -> bool:
        # Caller holds the lock.
        return (
            self._logging_enabled
            and self._metrics.total_requests % self._log_interval == 0
        )

    def _log_stats(self) -> None:
        stats = self.snapshot()
        logger.info(
            "Cost optimization stats",
            extra={
                "data": {
                    "requests": stats.total_requests,
                    "hit_rate": f"{stats.hit_rate}%",
                    "ai_calls_saved": stats.ai_calls_saved,
                    "estimated_savings": f"${stats.estimated_cost_saved:.2f}",
                    "target_hit_rate": f"{TARGET_HIT_RATE:.0f}%",
                }
            },
        )
