"""Decision combination.

Multiple rules are combined with AND semantics. The most restrictive
outcome wins:

    BLOCKED > CHALLENGE > ALLOWED

retry_after_ms is the maximum over the rules that produced the winning
outcome: a client must wait for the slowest blocking bucket before every
rule will pass again.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from authguard.core.constants import FAIL_CLOSED_RETRY_AFTER_MS
from authguard.domain.enums import DecisionOutcome, FailMode
from authguard.domain.value_objects import RateLimitDecision, RuleResult

STORE_ERROR_RULE = "store_error"
ERROR_KEY = "error"
MANUAL_BLOCK_RULE = "manual_block"
MANUAL_KEY = "manual"


def combine_rule_results(
    action: str,
    rule_results: Sequence[RuleResult],
    keys: Mapping[str, str],
) -> RateLimitDecision:
    """Combine per-rule results into the final decision.

    Args:
        action: Action that was checked.
        rule_results: Results in evaluation order.
        keys: Rule name to bucket key.

    Returns:
        RateLimitDecision: Combined decision. The result does not depend on
        the order of rule_results.
    """
    results = tuple(rule_results)

    blocked = [r for r in results if r.outcome == DecisionOutcome.BLOCKED]
    if blocked:
        return RateLimitDecision(
            allowed=False,
            action=action,
            outcome=DecisionOutcome.BLOCKED,
            retry_after_ms=max(r.retry_after_ms for r in blocked),
            rule_results=results,
            keys=dict(keys),
        )

    challenged = [r for r in results if r.outcome == DecisionOutcome.CHALLENGE]
    if challenged:
        return RateLimitDecision(
            allowed=True,
            action=action,
            outcome=DecisionOutcome.CHALLENGE,
            retry_after_ms=max(r.retry_after_ms for r in challenged),
            rule_results=results,
            keys=dict(keys),
            challenge=next((r.challenge for r in challenged if r.challenge), None),
        )

    return RateLimitDecision(
        allowed=True,
        action=action,
        outcome=DecisionOutcome.ALLOWED,
        retry_after_ms=0,
        rule_results=results,
        keys=dict(keys),
    )


def create_error_decision(
    action: str,
    fail_mode: FailMode,
    error: BaseException | str,
) -> RateLimitDecision:
    """Fallback decision for a store failure.

    Args:
        action: Action that was checked.
        fail_mode: OPEN allows the request, CLOSED blocks it.
        error: The store failure.

    Returns:
        RateLimitDecision: Decision flagged with failed_due_to_error.
    """
    fail_open = FailMode(fail_mode) == FailMode.OPEN
    outcome = DecisionOutcome.ALLOWED if fail_open else DecisionOutcome.BLOCKED
    retry_after_ms = 0 if fail_open else FAIL_CLOSED_RETRY_AFTER_MS

    return RateLimitDecision(
        allowed=fail_open,
        action=action,
        outcome=outcome,
        retry_after_ms=retry_after_ms,
        rule_results=(
            RuleResult(
                rule_name=STORE_ERROR_RULE,
                key=ERROR_KEY,
                allowed=fail_open,
                outcome=outcome,
                retry_after_ms=retry_after_ms,
            ),
        ),
        keys={},
        failed_due_to_error=True,
        error=str(error),
    )


def create_allowed_decision(action: str) -> RateLimitDecision:
    """Unconditional ALLOWED decision (no policy, or rate limiting bypassed)."""
    return RateLimitDecision(
        allowed=True,
        action=action,
        outcome=DecisionOutcome.ALLOWED,
    )


def create_blocked_decision(
    action: str,
    retry_after_ms: int,
    reason: str | None = None,
) -> RateLimitDecision:
    """BLOCKED decision outside the bucket logic (e.g., a deny list hit).

    Args:
        action: Action being denied.
        retry_after_ms: Milliseconds before the client may retry.
        reason: Optional reason, reported in the error field.

    Returns:
        RateLimitDecision: Blocked decision with a manual_block rule result.
    """
    return RateLimitDecision(
        allowed=False,
        action=action,
        outcome=DecisionOutcome.BLOCKED,
        retry_after_ms=retry_after_ms,
        rule_results=(
            RuleResult(
                rule_name=MANUAL_BLOCK_RULE,
                key=MANUAL_KEY,
                allowed=False,
                outcome=DecisionOutcome.BLOCKED,
                retry_after_ms=retry_after_ms,
            ),
        ),
        keys={},
        error=reason,
    )


def format_decision_for_logging(decision: RateLimitDecision) -> dict[str, Any]:
    """Flatten a decision into structured log fields.

    Keys are not included: they carry (hashed) identifiers.
    """
    fields: dict[str, Any] = {
        "action": decision.action,
        "allowed": decision.allowed,
        "outcome": decision.outcome.value,
        "retry_after_ms": decision.retry_after_ms,
        "rules_evaluated": len(decision.rule_results),
        "failed_rules": decision.failed_rules,
    }
    if decision.challenge is not None:
        fields["challenge"] = decision.challenge
    if decision.failed_due_to_error:
        fields["failed_due_to_error"] = True
        fields["error"] = decision.error
    return fields
