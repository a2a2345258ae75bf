"""Common error classes used across layers.

Usage:
    from authguard.core.errors import ValidationError
    from authguard.core.enums import ErrorCode
    from authguard.core.result import Failure

    return Failure(error=ValidationError(
        code=ErrorCode.INVALID_DURATION,
        message="Invalid duration format: 5x",
        field="refill_interval",
    ))
"""

from dataclasses import dataclass

from authguard.core.errors.domain_error import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationError(DomainError):
    """Input validation failure.

    Attributes:
        code: ErrorCode enum.
        message: Human-readable message.
        field: Field name (or dotted path) that failed validation.
        details: Additional context.
    """

    field: str | None = None
