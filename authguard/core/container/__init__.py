"""Container module - centralized dependency injection.

Composition root: the only place that picks concrete adapters from
settings. Everything else receives its collaborators as arguments.

    from authguard.core.container import get_policy_engine, get_rate_limiter
"""

from authguard.core.container.infrastructure import (
    get_logger,
    get_metrics,
    get_store,
)
from authguard.core.container.rate_limit import (
    get_policies,
    get_policy_engine,
    get_rate_limiter,
    shutdown_rate_limiting,
)

__all__ = [
    "get_logger",
    "get_metrics",
    "get_policies",
    "get_policy_engine",
    "get_rate_limiter",
    "get_store",
    "shutdown_rate_limiting",
]
