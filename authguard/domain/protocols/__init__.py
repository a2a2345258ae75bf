"""Domain protocols (ports) package.

Infrastructure adapters implement these protocols structurally (no
inheritance required).

Usage:
    from authguard.domain.protocols import LoggerProtocol, RateLimitStoreProtocol
"""

from authguard.domain.protocols.key_extractor_protocol import KeyExtractorProtocol
from authguard.domain.protocols.logger_protocol import LoggerProtocol
from authguard.domain.protocols.metrics_protocol import RateLimitMetricsProtocol
from authguard.domain.protocols.rate_limit_store_protocol import (
    RateLimitStoreProtocol,
)

__all__ = [
    "KeyExtractorProtocol",
    "LoggerProtocol",
    "RateLimitMetricsProtocol",
    "RateLimitStoreProtocol",
]
