"""Result types for railway-oriented programming.

Operations that can fail as part of normal use (policy documents with bad
values, unparseable durations, identifiers that cannot be hashed) return a
Result instead of raising. This keeps error handling explicit at the call
site and easy to test.

Usage:
    def parse(value: str) -> Result[int, ValidationError]:
        if not value.isdigit():
            return Failure(error=ValidationError(...))
        return Success(value=int(value))

    match parse("42"):
        case Success(value=number):
            print(number)
        case Failure(error=err):
            print(err.message)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Represents a successful operation result.

    Attributes:
        value: The successful result value.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Represents a failed operation result.

    Attributes:
        error: The error that occurred.
    """

    error: E


# Type alias for Result union
type Result[T, E] = Success[T] | Failure[E]
