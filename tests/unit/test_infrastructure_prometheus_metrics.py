"""Unit tests for the Prometheus metrics adapter."""

import pytest
from prometheus_client import CollectorRegistry

from authguard.infrastructure.metrics import PrometheusRateLimitMetrics


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated registry per test."""
    return CollectorRegistry()


@pytest.mark.unit
class TestPrometheusRateLimitMetrics:
    """Tests for PrometheusRateLimitMetrics."""

    def test_counts_requests_by_action_and_outcome(self, registry):
        """Should increment the labelled counter."""
        metrics = PrometheusRateLimitMetrics(registry)

        metrics.inc_requests("login", "ALLOWED")
        metrics.inc_requests("login", "ALLOWED")
        metrics.inc_requests("login", "BLOCKED")

        assert registry.get_sample_value(
            "rate_limiter_requests_total", {"action": "login", "outcome": "ALLOWED"}
        ) == 2
        assert registry.get_sample_value(
            "rate_limiter_requests_total", {"action": "login", "outcome": "BLOCKED"}
        ) == 1

    def test_observes_latency_in_ms_buckets(self, registry):
        """Should record durations into millisecond buckets."""
        metrics = PrometheusRateLimitMetrics(registry)

        metrics.observe_latency("login", 0.3)
        metrics.observe_latency("login", 7)

        assert registry.get_sample_value(
            "rate_limiter_check_duration_ms_count", {"action": "login"}
        ) == 2
        assert registry.get_sample_value(
            "rate_limiter_check_duration_ms_bucket", {"action": "login", "le": "0.5"}
        ) == 1
        assert registry.get_sample_value(
            "rate_limiter_check_duration_ms_bucket", {"action": "login", "le": "10.0"}
        ) == 2

    def test_store_size_gauge(self, registry):
        """Should set the store size gauge."""
        metrics = PrometheusRateLimitMetrics(registry)

        metrics.set_store_size(42)

        assert registry.get_sample_value("rate_limiter_store_size") == 42

    def test_custom_prefix(self, registry):
        """Should prefix metric names."""
        metrics = PrometheusRateLimitMetrics(registry, prefix="auth")

        metrics.set_store_size(1)

        assert registry.get_sample_value("auth_store_size") == 1
