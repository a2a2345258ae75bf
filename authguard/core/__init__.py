"""Core shared kernel.

Foundational utilities used across all layers:
- Result types for railway-oriented programming
- Base error classes returned as data
- Clock abstraction and duration helpers

The core module has NO dependencies on other application layers.
"""

from authguard.core.enums import ErrorCode
from authguard.core.errors import DomainError, ValidationError
from authguard.core.result import Failure, Result, Success

__all__ = [
    "DomainError",
    "ErrorCode",
    "Failure",
    "Result",
    "Success",
    "ValidationError",
]
