"""Core errors package.

Usage:
    from authguard.core.errors import DomainError, ValidationError
"""

from authguard.core.errors.common_errors import ValidationError
from authguard.core.errors.domain_error import DomainError

__all__ = [
    "DomainError",
    "ValidationError",
]
