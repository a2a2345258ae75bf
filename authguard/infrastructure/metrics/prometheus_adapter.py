"""Prometheus metrics for rate limit decisions.

Metrics:
    rate_limiter_requests_total{action, outcome}   Counter
    rate_limiter_check_duration_ms{action}         Histogram
    rate_limiter_store_size                        Gauge

Pass a dedicated CollectorRegistry in tests; the default registry only
accepts each metric name once per process.
"""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

CHECK_DURATION_BUCKETS_MS: tuple[float, ...] = (
    0.1,
    0.5,
    1,
    2,
    5,
    10,
    25,
    50,
    100,
)


class PrometheusRateLimitMetrics:
    """RateLimitMetricsProtocol implementation on prometheus-client.

    Args:
        registry: Registry to register the metrics with.
        prefix: Metric name prefix.
    """

    def __init__(
        self,
        registry: CollectorRegistry = REGISTRY,
        *,
        prefix: str = "rate_limiter",
    ) -> None:
        self.registry = registry
        self._requests = Counter(
            f"{prefix}_requests_total",
            "Rate limit decisions by action and outcome",
            ["action", "outcome"],
            registry=registry,
        )
        self._latency = Histogram(
            f"{prefix}_check_duration_ms",
            "Rate limit check duration in milliseconds",
            ["action"],
            buckets=CHECK_DURATION_BUCKETS_MS,
            registry=registry,
        )
        self._store_size = Gauge(
            f"{prefix}_store_size",
            "Entries in the rate limit store",
            registry=registry,
        )

    def inc_requests(self, action: str, outcome: str) -> None:
        self._requests.labels(action=action, outcome=outcome).inc()

    def observe_latency(self, action: str, duration_ms: float) -> None:
        self._latency.labels(action=action).observe(duration_ms)

    def set_store_size(self, size: int) -> None:
        self._store_size.set(size)
