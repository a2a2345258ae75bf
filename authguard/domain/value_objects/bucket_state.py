"""Token bucket state value objects.

BucketState values are persisted by the store. Transitions (refill,
consume) always produce a new value; nothing mutates a state in place.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class BucketState:
    """Token bucket state stored per key.

    Attributes:
        tokens: Available tokens. Fractional; 0 <= tokens <= capacity.
        last_refill_time: When tokens were last refilled (ms).
        created_at: When the bucket was created (ms).
        expires_at: When the entry may be reclaimed (ms). Never before
            created_at.
    """

    tokens: float
    last_refill_time: int
    created_at: int
    expires_at: int


@dataclass(frozen=True, slots=True, kw_only=True)
class TokenBucketConfig:
    """Numeric bucket parameters, taken from a rule.

    Attributes:
        capacity: Maximum tokens.
        refill_tokens: Tokens added per interval.
        refill_interval_ms: Interval length in milliseconds.
    """

    capacity: float
    refill_tokens: float
    refill_interval_ms: int


@dataclass(frozen=True, slots=True, kw_only=True)
class ConsumeResult:
    """Result of trying to consume tokens from a bucket.

    Attributes:
        allowed: Whether the tokens were consumed.
        remaining_tokens: Tokens left after the attempt.
        retry_after_ms: Milliseconds until the cost is affordable (0 if
            allowed).
        bucket_state: State to persist.
    """

    allowed: bool
    remaining_tokens: float
    retry_after_ms: int
    bucket_state: BucketState
