"""Rule results and rate limit decisions.

A RuleResult is produced per evaluated rule; the RateLimitDecision is the
single output contract of the policy engine.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from authguard.domain.enums import DecisionOutcome


@dataclass(frozen=True, slots=True, kw_only=True)
class RuleResult:
    """Result of evaluating one rule.

    Attributes:
        rule_name: Name of the rule.
        key: Bucket key, or "skipped" when a dimension was missing.
        allowed: Whether the rule let the request through. CHALLENGE
            results report True.
        outcome: ALLOWED, BLOCKED or CHALLENGE.
        retry_after_ms: Milliseconds until the rule would pass again.
        remaining_tokens: Tokens left in the bucket.
        challenge: Challenge hint for CHALLENGE outcomes.
    """

    rule_name: str
    key: str
    allowed: bool
    outcome: DecisionOutcome
    retry_after_ms: int = 0
    remaining_tokens: float = 0
    challenge: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation."""
        data: dict[str, Any] = {
            "rule_name": self.rule_name,
            "key": self.key,
            "allowed": self.allowed,
            "outcome": self.outcome.value,
            "retry_after_ms": self.retry_after_ms,
            "remaining_tokens": self.remaining_tokens,
        }
        if self.challenge is not None:
            data["challenge"] = self.challenge
        return data


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitDecision:
    """Final decision for a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        action: The action that was checked.
        outcome: Combined outcome.
        retry_after_ms: Milliseconds until a retry can succeed.
        rule_results: Per-rule results in evaluation order.
        keys: Rule name to bucket key, for rules that produced a key.
        challenge: Challenge hint when the outcome is CHALLENGE.
        failed_due_to_error: True when the decision is a fail-mode fallback
            for a store error rather than a real evaluation.
        error: Store error message for fallback decisions.
    """

    allowed: bool
    action: str
    outcome: DecisionOutcome
    retry_after_ms: int = 0
    rule_results: tuple[RuleResult, ...] = ()
    keys: Mapping[str, str] = field(default_factory=dict)
    challenge: str | None = None
    failed_due_to_error: bool = False
    error: str | None = None

    @property
    def failed_rules(self) -> list[str]:
        """Names of rules that did not fully pass."""
        return [
            result.rule_name
            for result in self.rule_results
            if result.outcome != DecisionOutcome.ALLOWED
        ]

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation."""
        data: dict[str, Any] = {
            "allowed": self.allowed,
            "action": self.action,
            "outcome": self.outcome.value,
            "retry_after_ms": self.retry_after_ms,
            "rule_results": [result.to_dict() for result in self.rule_results],
            "keys": dict(self.keys),
            "failed_due_to_error": self.failed_due_to_error,
        }
        if self.challenge is not None:
            data["challenge"] = self.challenge
        if self.error is not None:
            data["error"] = self.error
        return data
