"""Time utilities for rate limiting.

All rate limiting arithmetic uses integer milliseconds since the epoch.
Components take a `Clock` so tests can control time precisely instead of
sleeping.

Usage:
    from authguard.core.time import ManualClock, TIME

    clock = ManualClock(0)
    clock.advance(TIME.MINUTE)
    clock.now()  # 60000
"""

import math
import re
import time
from typing import Final, Protocol

from authguard.core.enums import ErrorCode
from authguard.core.errors import ValidationError
from authguard.core.result import Failure, Result, Success


class Clock(Protocol):
    """Source of the current time in milliseconds since the epoch."""

    def now(self) -> int:
        """Return the current time in milliseconds."""
        ...


class SystemClock:
    """Wall-clock time from `time.time()`."""

    def now(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock that only moves when told to.

    Args:
        initial_ms: Starting time in milliseconds.
    """

    def __init__(self, initial_ms: int = 0) -> None:
        self._now = initial_ms

    def now(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        """Move the clock forward (or backward, for a negative value)."""
        self._now += ms

    def set(self, ms: int) -> None:
        """Jump to an absolute time."""
        self._now = ms


class TIME:
    """Duration constants in milliseconds."""

    SECOND: Final[int] = 1_000
    MINUTE: Final[int] = 60 * 1_000
    HOUR: Final[int] = 60 * 60 * 1_000
    DAY: Final[int] = 24 * 60 * 60 * 1_000


_UNIT_MS: Final[dict[str, int]] = {
    "s": TIME.SECOND,
    "m": TIME.MINUTE,
    "h": TIME.HOUR,
    "d": TIME.DAY,
}

_DURATION_PATTERN = re.compile(r"^(\d+)(s|m|h|d)$")


def ms_to_seconds(ms: int) -> int:
    """Convert milliseconds to whole seconds, rounding up.

    Used for the HTTP Retry-After header, which must never tell a client
    to come back before the limit has actually cleared.

    Args:
        ms: Duration in milliseconds.

    Returns:
        int: Seconds, rounded up.
    """
    return math.ceil(ms / 1000)


def parse_duration(duration: str) -> Result[int, ValidationError]:
    """Parse a human-readable duration into milliseconds.

    Accepted format is `<number><unit>` with unit one of s, m, h, d.

    Args:
        duration: Duration string (e.g., "5m", "1h", "30s").

    Returns:
        Result[int, ValidationError]: Milliseconds, or a validation error
        describing the expected format.

    Example:
        >>> parse_duration("15m")
        Success(value=900000)
    """
    match = _DURATION_PATTERN.match(duration.strip().lower())
    if match is None:
        return Failure(
            error=ValidationError(
                code=ErrorCode.INVALID_DURATION,
                message=(
                    f"Invalid duration format: {duration}. "
                    "Expected format: <number><unit> (e.g., 5m, 1h, 30s)"
                ),
            )
        )

    value, unit = match.groups()
    return Success(value=int(value) * _UNIT_MS[unit])
