"""Unit tests for Settings (pydantic-settings)."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from authguard.core.config import Settings, get_settings
from authguard.core.enums import Environment


@pytest.mark.unit
class TestSettings:
    """Tests for Settings loading and validation."""

    def test_defaults(self):
        """Should use defaults when nothing is set."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.environment == Environment.DEVELOPMENT
        assert settings.log_level == "INFO"
        assert settings.hash_secret is None
        assert settings.store_sweep_interval_ms == 60_000
        assert settings.store_high_water_mark == 100_000
        assert settings.store_eviction_count is None
        assert settings.policies_file is None
        assert settings.metrics_enabled is False
        assert settings.use_json_logs is False

    def test_loads_prefixed_environment(self):
        """Should read AUTHGUARD_* variables."""
        env = {
            "AUTHGUARD_ENVIRONMENT": "production",
            "AUTHGUARD_LOG_LEVEL": "debug",
            "AUTHGUARD_HASH_SECRET": "s3cret",
            "AUTHGUARD_STORE_HIGH_WATER_MARK": "500",
            "AUTHGUARD_STORE_EVICTION_COUNT": "50",
            "AUTHGUARD_METRICS_ENABLED": "true",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.environment == Environment.PRODUCTION
        assert settings.log_level == "DEBUG"
        assert settings.hash_secret == "s3cret"
        assert settings.store_high_water_mark == 500
        assert settings.store_eviction_count == 50
        assert settings.metrics_enabled is True
        assert settings.use_json_logs is True

    def test_invalid_log_level(self):
        """Should reject unknown log levels."""
        with patch.dict(os.environ, {"AUTHGUARD_LOG_LEVEL": "LOUD"}, clear=True):
            with pytest.raises(ValidationError, match="Invalid log level"):
                Settings()

    def test_eviction_count_above_mark(self):
        """Should reject an eviction count above the high-water mark."""
        env = {
            "AUTHGUARD_STORE_HIGH_WATER_MARK": "10",
            "AUTHGUARD_STORE_EVICTION_COUNT": "20",
        }
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ValidationError, match="must not exceed"):
                Settings()

    def test_get_settings_is_cached(self):
        """Should return the same instance until the cache is cleared."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
