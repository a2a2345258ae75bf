"""Token bucket algorithm (pure functions).

The token bucket allows short bursts up to `capacity` while holding the
average rate to `refill_tokens` per `refill_interval_ms`.

Algorithm Overview:
    1. Bucket starts full (capacity tokens available)
    2. Each request consumes `cost` tokens
    3. Tokens refill continuously, pro rata to elapsed time
    4. Bucket never exceeds capacity
    5. Request allowed if enough tokens are available

Numeric semantics:
    Tokens are fractional. Nothing is rounded except retry_after_ms, which
    is always rounded UP so a caller is never told to retry before the
    tokens actually exist.

Example:
    capacity=10, refill_tokens=5, refill_interval_ms=1000
    - t=0: 10 requests allowed, bucket empty
    - t=0: 11th request denied, retry after 200ms (1 token / 5 per second)
    - t=1000: 5 tokens back

Usage:
    from authguard.rate_limiter.token_bucket import consume, create_bucket

    state = create_bucket(config, now, ttl_ms)
    result = consume(state, config, cost=1, now=now, ttl_ms=ttl_ms)
    if not result.allowed:
        wait(result.retry_after_ms)
"""

import math
from dataclasses import replace

from authguard.core.constants import UNBOUNDED_RETRY_MS
from authguard.domain.value_objects import (
    BucketState,
    ConsumeResult,
    RateLimitRule,
    TokenBucketConfig,
)


def calculate_refill_tokens(elapsed_ms: float, config: TokenBucketConfig) -> float:
    """Tokens earned over an elapsed period.

    Args:
        elapsed_ms: Time since the last refill in milliseconds.
        config: Bucket configuration.

    Returns:
        float: Tokens to add (may be fractional). 0 for non-positive elapsed
        time or a non-positive interval.
    """
    if elapsed_ms <= 0 or config.refill_interval_ms <= 0:
        return 0.0

    return elapsed_ms * config.refill_tokens / config.refill_interval_ms


def refill(state: BucketState, config: TokenBucketConfig, now: int) -> BucketState:
    """Refill a bucket up to `now`.

    A clock that moved backwards (elapsed <= 0) leaves the state untouched,
    so tokens are never removed by refill and last_refill_time never moves
    back.

    Args:
        state: Current bucket state.
        config: Bucket configuration.
        now: Current time in milliseconds.

    Returns:
        BucketState: New state with refilled tokens, capped at capacity.
    """
    elapsed_ms = now - state.last_refill_time
    if elapsed_ms <= 0:
        return state

    tokens = min(
        config.capacity, state.tokens + calculate_refill_tokens(elapsed_ms, config)
    )
    return replace(state, tokens=tokens, last_refill_time=now)


def calculate_retry_after_ms(tokens_needed: float, config: TokenBucketConfig) -> int:
    """Milliseconds until `tokens_needed` more tokens will have refilled.

    Args:
        tokens_needed: Missing tokens.
        config: Bucket configuration.

    Returns:
        int: Milliseconds, rounded up. 0 if nothing is needed;
        UNBOUNDED_RETRY_MS if the bucket never refills.
    """
    if tokens_needed <= 0:
        return 0

    if config.refill_tokens <= 0 or config.refill_interval_ms <= 0:
        return UNBOUNDED_RETRY_MS

    return math.ceil(tokens_needed / config.refill_tokens * config.refill_interval_ms)


def consume(
    state: BucketState,
    config: TokenBucketConfig,
    cost: float,
    now: int,
    ttl_ms: int,
) -> ConsumeResult:
    """Try to take `cost` tokens out of the bucket.

    The bucket is refilled first. Whether the request is allowed or not,
    expires_at moves to `now + ttl_ms`: a client that keeps getting
    throttled keeps its own throttling record alive.

    Args:
        state: Current bucket state.
        config: Bucket configuration.
        cost: Tokens to consume.
        now: Current time in milliseconds.
        ttl_ms: Entry lifetime from now.

    Returns:
        ConsumeResult: Decision, remaining tokens, retry time and new state.
    """
    refilled = refill(state, config, now)
    expires_at = max(now + ttl_ms, refilled.created_at)

    if refilled.tokens >= cost:
        new_state = replace(
            refilled, tokens=refilled.tokens - cost, expires_at=expires_at
        )
        return ConsumeResult(
            allowed=True,
            remaining_tokens=new_state.tokens,
            retry_after_ms=0,
            bucket_state=new_state,
        )

    new_state = replace(refilled, expires_at=expires_at)
    return ConsumeResult(
        allowed=False,
        remaining_tokens=refilled.tokens,
        retry_after_ms=calculate_retry_after_ms(cost - refilled.tokens, config),
        bucket_state=new_state,
    )


def create_bucket(config: TokenBucketConfig, now: int, ttl_ms: int) -> BucketState:
    """Create a full bucket.

    Args:
        config: Bucket configuration.
        now: Current time in milliseconds.
        ttl_ms: Entry lifetime from now.

    Returns:
        BucketState: State at full capacity.
    """
    return BucketState(
        tokens=config.capacity,
        last_refill_time=now,
        created_at=now,
        expires_at=now + ttl_ms,
    )


def rule_to_config(rule: RateLimitRule) -> TokenBucketConfig:
    """Extract the bucket parameters from a rule."""
    return TokenBucketConfig(
        capacity=rule.capacity,
        refill_tokens=rule.refill_tokens,
        refill_interval_ms=rule.refill_interval_ms,
    )


def default_ttl_ms(rule: RateLimitRule) -> int:
    """Entry lifetime for a rule's buckets.

    Uses rule.ttl_ms when set. Otherwise twice the full-refill period, so a
    bucket idle for two refill cycles can be reclaimed (by then it would be
    full again anyway).

    Args:
        rule: Rate limit rule.

    Returns:
        int: TTL in milliseconds.
    """
    if rule.ttl_ms is not None:
        return rule.ttl_ms

    full_refill_ms = rule.capacity * rule.refill_interval_ms / rule.refill_tokens
    return math.ceil(full_refill_ms * 2)


def is_expired(state: BucketState, now: int) -> bool:
    """Whether a bucket entry has outlived its TTL."""
    return now >= state.expires_at
