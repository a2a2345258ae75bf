"""HTTP presentation layer."""

from authguard.presentation.rate_limit import (
    RateLimiter,
    RateLimitExceeded,
    build_429_response,
    get_client_ip,
    rate_limit_exception_handler,
)

__all__ = [
    "RateLimitExceeded",
    "RateLimiter",
    "build_429_response",
    "get_client_ip",
    "rate_limit_exception_handler",
]
