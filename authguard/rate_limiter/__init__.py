"""Rate limiting core: token bucket, keys, policy evaluation, decisions.

Usage:
    from authguard.rate_limiter import DEFAULT_POLICIES, create_policy_engine
    from authguard.infrastructure.rate_limit import create_memory_store

    engine = create_policy_engine(create_memory_store(), DEFAULT_POLICIES)
"""

from authguard.rate_limiter.decision import (
    combine_rule_results,
    create_allowed_decision,
    create_blocked_decision,
    create_error_decision,
    format_decision_for_logging,
)
from authguard.rate_limiter.key_builder import (
    DefaultKeyExtractor,
    ParsedKey,
    build_key,
    build_keys_for_rules,
    default_key_extractor,
    extract_dimensions_for_logging,
    find_missing_dimensions,
    parse_key,
)
from authguard.rate_limiter.policies import DEFAULT_POLICIES, customize_policies
from authguard.rate_limiter.policy_engine import PolicyEngine, create_policy_engine
from authguard.rate_limiter.policy_loader import load_policies, load_policies_file
from authguard.rate_limiter.token_bucket import (
    calculate_refill_tokens,
    calculate_retry_after_ms,
    consume,
    create_bucket,
    default_ttl_ms,
    is_expired,
    refill,
    rule_to_config,
)

__all__ = [
    "DEFAULT_POLICIES",
    "DefaultKeyExtractor",
    "ParsedKey",
    "PolicyEngine",
    "build_key",
    "build_keys_for_rules",
    "calculate_refill_tokens",
    "calculate_retry_after_ms",
    "combine_rule_results",
    "consume",
    "create_allowed_decision",
    "create_blocked_decision",
    "create_bucket",
    "create_error_decision",
    "create_policy_engine",
    "customize_policies",
    "default_key_extractor",
    "default_ttl_ms",
    "extract_dimensions_for_logging",
    "find_missing_dimensions",
    "format_decision_for_logging",
    "is_expired",
    "load_policies",
    "load_policies_file",
    "parse_key",
    "refill",
    "rule_to_config",
]
