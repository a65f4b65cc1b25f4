# src/tracking/models.py — v1
"""Tracking domain models: CostMetrics, OptimizationStats."""

from __future__ import annotations

from pydantic import BaseModel


class CostMetrics(BaseModel):
    """Raw hit/miss counters of the analysis cache."""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    ai_calls_saved: int = 0
    estimated_cost_saved: float = 0.0


class OptimizationStats(CostMetrics):
    """Counters plus values derived at snapshot time."""

    hit_rate: float = 0.0
    is_optimal: bool = False
    recommendation: str = ""
