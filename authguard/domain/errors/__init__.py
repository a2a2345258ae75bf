"""Domain errors for rate limiting.

Usage:
    from authguard.domain.errors import StoreShutdownError
"""

from authguard.domain.errors.store_error import StoreError, StoreShutdownError

__all__ = [
    "StoreError",
    "StoreShutdownError",
]
