"""Centralized constants for internal implementation details.

These are fixed properties of the algorithms and wire formats, NOT
environment-specific configuration. For settings that vary per deployment,
use `authguard/core/config.py` instead.

Example:
    >>> from authguard.core.constants import KEY_SEPARATOR, SKIPPED_KEY
"""

# =============================================================================
# Key Format
# =============================================================================

KEY_SEPARATOR: str = ":"
"""Separator between key components (action, rule name, dimension pairs)."""

VALUE_SEPARATOR: str = "="
"""Separator between a dimension tag and its value inside a key."""

KEY_PLACEHOLDER: str = "_"
"""Replacement for separator characters found inside dimension values."""

SKIPPED_KEY: str = "skipped"
"""Key reported for a rule whose dimensions are missing from the request."""

MASKED_PREFIX_LENGTH: int = 8
"""Characters of a hashed identifier kept visible in logs."""


# =============================================================================
# Token Bucket
# =============================================================================

UNBOUNDED_RETRY_MS: int = 2**53 - 1
"""retry_after_ms reported when a bucket never refills ("never")."""

FAIL_CLOSED_RETRY_AFTER_MS: int = 60_000
"""retry_after_ms for fail-closed decisions made during a store outage."""

DEFAULT_CHALLENGE_HINT: str = "captcha_required"
"""Challenge hint attached to CHALLENGE outcomes unless a rule overrides it."""


# =============================================================================
# Memory Store
# =============================================================================

DEFAULT_SWEEP_INTERVAL_MS: int = 60_000
"""Interval between background sweeps of expired entries."""

DEFAULT_HIGH_WATER_MARK: int = 100_000
"""Entry count at which insertion of a new key triggers eviction."""

DEFAULT_EVICTION_RATIO: float = 0.1
"""Fraction of the high-water mark evicted when no eviction count is given."""


# =============================================================================
# HTTP
# =============================================================================

RATE_LIMITED_ERROR: str = "RATE_LIMITED"
"""Error identifier in 429 response bodies."""

CHALLENGE_HEADER: str = "X-RateLimit-Challenge"
"""Response header signalling that the client must complete a challenge."""
