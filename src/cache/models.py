# src/cache/models.py — v2
"""Cache domain models: TierLookup."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

CacheTier = Literal["memory", "shared"]


class TierLookup(BaseModel):
    """Outcome of walking the cache tiers for one fingerprint."""

    hit_tier: CacheTier | None = None
    value: str | None = None

    @property
    def is_hit(self) -> bool:
        return self.hit_tier is not None
