"""Rate limit metrics protocol.

Metrics-agnostic sink for decision counters, latency and store size. The
bundled adapter uses prometheus-client; any object with these methods works.

Example (custom sink):
    class StatsDMetrics:
        def inc_requests(self, action: str, outcome: str) -> None:
            statsd.incr("rate_limiter.requests", tags={"action": action, "outcome": outcome})
        ...
"""

from typing import Protocol


class RateLimitMetricsProtocol(Protocol):
    """Protocol for rate limiter metrics sinks."""

    def inc_requests(self, action: str, outcome: str) -> None:
        """Count one decision for an action and outcome."""
        ...

    def observe_latency(self, action: str, duration_ms: float) -> None:
        """Record how long a check took."""
        ...

    def set_store_size(self, size: int) -> None:
        """Report the current number of store entries."""
        ...
