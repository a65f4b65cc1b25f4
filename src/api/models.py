# src/api/models.py — v1
"""API-level models: the health report returned by the health endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class RedisHealth(BaseModel):
    """Shared cache tier status."""

    available: bool
    backend: str
    status: Literal["connected", "error", "fallback"]


class CostOptimizationHealth(BaseModel):
    """Human-facing view of the cache counters."""

    enabled: bool
    cache_hit_rate: str
    total_requests: int
    estimated_savings: str
    performance: Literal["optimal", "needs_improvement"]
    recommendation: str


class CleanupHealth(BaseModel):
    enabled: bool
    max_storage_days: int
    pending_jobs: int = 0


class HealthReport(BaseModel):
    """Snapshot of the optimizer's collaborators and counters."""

    status: Literal["healthy", "error"] = "healthy"
    timestamp: datetime
    version: str
    redis: RedisHealth
    cost_optimization: CostOptimizationHealth
    cleanup: CleanupHealth
    ready_for_production: bool

    @property
    def status_code(self) -> int:
        """200 when production-ready, 206 (partial) otherwise."""
        return 200 if self.ready_for_production else 206
