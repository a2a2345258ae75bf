"""Metrics adapters implementing RateLimitMetricsProtocol."""

from authguard.infrastructure.metrics.prometheus_adapter import (
    PrometheusRateLimitMetrics,
)

__all__ = ["PrometheusRateLimitMetrics"]
