"""Unit tests for the rate limiting container factories.

Tests cover:
- Default policies when no policy file is configured
- Policy file loading and rejection
- Singleton behavior
- Store sizing from settings
- Shutdown clearing the cached singletons
"""

import json

import pytest

from authguard.core.config import get_settings
from authguard.core.container import (
    get_logger,
    get_metrics,
    get_policies,
    get_policy_engine,
    get_rate_limiter,
    get_store,
    shutdown_rate_limiting,
)
from authguard.infrastructure.rate_limit import BoundedMemoryStore
from authguard.presentation.rate_limit import RateLimiter
from authguard.rate_limiter.policies import DEFAULT_POLICIES
from authguard.rate_limiter.policy_engine import PolicyEngine

CACHED = (
    get_settings,
    get_logger,
    get_metrics,
    get_store,
    get_policies,
    get_policy_engine,
    get_rate_limiter,
)


@pytest.fixture(autouse=True)
def fresh_container(monkeypatch):
    """Clear container caches and AUTHGUARD_* variables around each test."""
    for name in (
        "AUTHGUARD_POLICIES_FILE",
        "AUTHGUARD_METRICS_ENABLED",
        "AUTHGUARD_HASH_SECRET",
        "AUTHGUARD_STORE_HIGH_WATER_MARK",
        "AUTHGUARD_STORE_EVICTION_COUNT",
        "AUTHGUARD_STORE_SWEEP_INTERVAL_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    for factory in CACHED:
        factory.cache_clear()
    yield
    for factory in CACHED:
        factory.cache_clear()


@pytest.mark.unit
class TestGetPolicies:
    """Test get_policies()."""

    def test_defaults_without_file(self):
        """Should return the built-in policies."""
        assert get_policies() is DEFAULT_POLICIES

    def test_loads_policy_file(self, tmp_path, monkeypatch):
        """Should load policies from AUTHGUARD_POLICIES_FILE."""
        path = tmp_path / "policies.json"
        path.write_text(
            json.dumps(
                {
                    "policies": {
                        "login": {
                            "rules": [
                                {
                                    "name": "per_ip",
                                    "dimensions": ["ip"],
                                    "capacity": 10,
                                    "refill_tokens": 10,
                                    "refill_interval": "1h",
                                }
                            ]
                        }
                    }
                }
            ),
            encoding="utf-8",
        )
        monkeypatch.setenv("AUTHGUARD_POLICIES_FILE", str(path))

        policies = get_policies()

        assert list(policies) == ["login"]
        assert policies["login"].rules[0].capacity == 10

    def test_invalid_policy_file_raises(self, tmp_path, monkeypatch):
        """Should refuse to start with an invalid policy file."""
        monkeypatch.setenv("AUTHGUARD_POLICIES_FILE", str(tmp_path / "missing.json"))

        with pytest.raises(ValueError, match="Cannot read policy file"):
            get_policies()


@pytest.mark.unit
class TestRateLimitSingletons:
    """Test the engine, limiter and store factories."""

    def test_engine_is_singleton(self):
        """Should return the same engine on repeated calls."""
        engine = get_policy_engine()

        assert isinstance(engine, PolicyEngine)
        assert get_policy_engine() is engine
        assert sorted(engine.list_actions()) == sorted(DEFAULT_POLICIES)

    def test_rate_limiter_wraps_engine(self):
        """Should build the limiter around the engine singleton."""
        limiter = get_rate_limiter()

        assert isinstance(limiter, RateLimiter)
        assert limiter.engine is get_policy_engine()

    def test_store_sized_from_settings(self, monkeypatch):
        """Should size the store from AUTHGUARD_STORE_* settings."""
        monkeypatch.setenv("AUTHGUARD_STORE_HIGH_WATER_MARK", "500")
        monkeypatch.setenv("AUTHGUARD_STORE_SWEEP_INTERVAL_MS", "0")

        store = get_store()

        assert isinstance(store, BoundedMemoryStore)
        assert store.options.high_water_mark == 500
        assert store.options.effective_eviction_count == 50

    def test_metrics_disabled_by_default(self):
        """Should not create metrics unless enabled."""
        assert get_metrics() is None

    async def test_shutdown_clears_singletons(self, monkeypatch):
        """Should shut the store down and build fresh singletons afterwards."""
        monkeypatch.setenv("AUTHGUARD_STORE_SWEEP_INTERVAL_MS", "0")
        store = get_store()
        engine = get_policy_engine()

        await shutdown_rate_limiting()

        assert store.is_shutdown
        assert get_store() is not store
        assert get_policy_engine() is not engine
        await get_store().shutdown()
