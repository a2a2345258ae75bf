"""
Configuration management using Pydantic Settings.

Type-safe, validated configuration loaded from environment variables with
the `AUTHGUARD_` prefix.

Architecture:
- Flat Settings structure (no nesting)
- All config loaded from environment variables
- Type validation via Pydantic

Usage:
    from authguard.core.config import get_settings

    settings = get_settings()
    if settings.metrics_enabled:
        ...
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from authguard.core.constants import (
    DEFAULT_HIGH_WATER_MARK,
    DEFAULT_SWEEP_INTERVAL_MS,
)
from authguard.core.enums import Environment


class Settings(BaseSettings):
    """
    Rate limiter settings (flat structure).

    Configuration precedence:
        1. Environment variables (AUTHGUARD_*)
        2. Default values (only for non-sensitive config)
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Runtime environment (development, testing, ci, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Identifier hashing
    hash_secret: str | None = Field(
        default=None,
        description="HMAC secret for hashing emails/phone numbers before keying. "
        "Without it, email and phone dimensions are never populated.",
    )

    # Memory store sizing
    store_sweep_interval_ms: int = Field(
        default=DEFAULT_SWEEP_INTERVAL_MS,
        description="Interval between background sweeps of expired entries (0 disables)",
    )
    store_high_water_mark: int = Field(
        default=DEFAULT_HIGH_WATER_MARK,
        gt=0,
        description="Maximum number of bucket entries before eviction kicks in",
    )
    store_eviction_count: int | None = Field(
        default=None,
        gt=0,
        description="Entries evicted per high-water-mark trigger (default: 10% of the mark)",
    )

    # Policies
    policies_file: str | None = Field(
        default=None,
        description="Path to a JSON policy document. Built-in defaults are used when unset.",
    )

    # Observability
    metrics_enabled: bool = Field(
        default=False,
        description="Record Prometheus metrics for every decision",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTHGUARD_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Normalize and validate the log level name.

        Args:
            v: Log level name.

        Returns:
            str: Upper-cased log level.

        Raises:
            ValueError: If the level is not a standard logging level.
        """
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_eviction_count(self) -> "Settings":
        """Eviction count must fit under the high-water mark."""
        if (
            self.store_eviction_count is not None
            and self.store_eviction_count > self.store_high_water_mark
        ):
            raise ValueError(
                "store_eviction_count must not exceed store_high_water_mark"
            )
        return self

    @property
    def use_json_logs(self) -> bool:
        """JSON log output outside local development."""
        return self.environment != Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance.

    Returns:
        Settings: Configuration loaded from the environment.
    """
    return Settings()
