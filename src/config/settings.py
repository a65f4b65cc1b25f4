# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache, batching, cleanup and cost-tracking
settings. Read once at startup; nothing re-reads the environment later.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache tiers ===
    cache_backend: Literal["memory", "redis"] = "memory"
    cache_redis_url: str = ""
    cache_key_prefix: str = "autopost:analysis:"
    cache_ttl_seconds: int = 30 * 24 * 60 * 60
    memory_cache_ttl_seconds: int = 24 * 60 * 60
    memory_cache_max_entries: int = 1000
    cache_single_flight: bool = False

    # === Batch processing ===
    batch_size: int = 10
    batch_delay_ms: int = 100

    # === Image cleanup ===
    cleanup_enabled: bool = True
    cleanup_max_storage_days: int = 1
    cleanup_default_delay_minutes: float = 60
    cleanup_base_url: str = "http://localhost:3000"
    cleanup_endpoint_path: str = "/api/upload/delete"
    cleanup_timeout_seconds: float = 10.0

    # === Cost tracking ===
    cost_tracking_enabled: bool = False
    cost_log_interval: int = 1000
    cost_per_ai_call: float = 0.01
    cost_optimal_hit_rate: float = 90.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("batch_size", "cost_log_interval", "memory_cache_max_entries")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("batch_delay_ms", "cleanup_default_delay_minutes")
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        # The in-process tier only accelerates the shared tier.
        if self.memory_cache_ttl_seconds >= self.cache_ttl_seconds:
            errors.append(
                "MEMORY_CACHE_TTL_SECONDS must be < CACHE_TTL_SECONDS"
            )

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")

        if self.cleanup_max_storage_days < 1:
            errors.append("CLEANUP_MAX_STORAGE_DAYS must be >= 1")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cleanup_endpoint_url(self) -> str:
        """Full URL of the image deletion endpoint."""
        return self.cleanup_base_url.rstrip("/") + self.cleanup_endpoint_path

    @property
    def cleanup_max_delay_minutes(self) -> float:
        """Longest delay a scheduled cleanup may wait."""
        return self.cleanup_max_storage_days * 24 * 60


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-request config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
