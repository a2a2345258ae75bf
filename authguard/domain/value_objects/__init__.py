"""Domain value objects.

Immutable value objects for rate limit configuration, bucket state,
request context and decisions.
"""

from authguard.domain.value_objects.bucket_state import (
    BucketState,
    ConsumeResult,
    TokenBucketConfig,
)
from authguard.domain.value_objects.rate_limit_decision import (
    RateLimitDecision,
    RuleResult,
)
from authguard.domain.value_objects.rate_limit_rule import (
    ActionPolicy,
    RateLimitRule,
    policies_by_id,
)
from authguard.domain.value_objects.request_context import RequestContext

__all__ = [
    "ActionPolicy",
    "BucketState",
    "ConsumeResult",
    "RateLimitDecision",
    "RateLimitRule",
    "RequestContext",
    "RuleResult",
    "TokenBucketConfig",
    "policies_by_id",
]
