"""Infrastructure dependency factories.

Application-scoped singletons:
- Logging (structlog console adapter)
- Metrics (prometheus-client, when enabled)
- Bucket store (bounded in-memory store)
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from authguard.core.config import get_settings

if TYPE_CHECKING:
    from authguard.domain.protocols import (
        LoggerProtocol,
        RateLimitMetricsProtocol,
    )
    from authguard.infrastructure.rate_limit import BoundedMemoryStore


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    Adapter selection is centralized here (composition root):
    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)

    Returns:
        LoggerProtocol: Logger instance implementing the protocol.
    """
    from authguard.infrastructure.logging import ConsoleAdapter

    settings = get_settings()
    return ConsoleAdapter(use_json=settings.use_json_logs, log_level=settings.log_level)


@lru_cache()
def get_metrics() -> "RateLimitMetricsProtocol | None":
    """Return the Prometheus metrics sink, or None when metrics are disabled.

    Metrics register with the default prometheus-client registry, so this
    must stay a singleton.
    """
    if not get_settings().metrics_enabled:
        return None

    from authguard.infrastructure.metrics import PrometheusRateLimitMetrics

    return PrometheusRateLimitMetrics()


@lru_cache()
def get_store() -> "BoundedMemoryStore":
    """Return the bucket store singleton sized from settings.

    The background sweeper starts on the first store operation inside the
    running event loop.
    """
    from authguard.infrastructure.rate_limit import (
        BoundedMemoryStore,
        MemoryStoreOptions,
    )

    settings = get_settings()
    options = MemoryStoreOptions(
        sweep_interval_ms=settings.store_sweep_interval_ms,
        high_water_mark=settings.store_high_water_mark,
        eviction_count=settings.store_eviction_count,
    )
    return BoundedMemoryStore(options, logger=get_logger())
