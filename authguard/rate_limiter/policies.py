"""Built-in policies for authentication actions.

Limits per action (capacity / refill period):

    password_reset_request (fail closed)
        per_ip        5 / 1 min
        per_email     3 / 15 min
    register (fail open)
        per_ip        10 / 1 hour
        per_ip_email  3 / 1 hour, challenge instead of block
    otp_send (fail closed)
        per_session   3 / 10 min
        per_ip        10 / 1 hour
    otp_verify (fail closed)
        per_session   5 / 10 min
    login (fail closed)
        per_ip        20 / 1 hour
        per_ip_email  5 / 15 min

Entries live twice as long as a full refill period.
"""

from collections.abc import Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from authguard.core.time import TIME
from authguard.domain.enums import FailMode, KeyDimension, RuleMode
from authguard.domain.value_objects import ActionPolicy, RateLimitRule


def _rule(
    name: str,
    dimensions: tuple[KeyDimension, ...],
    capacity: int,
    period_ms: int,
    mode: RuleMode = RuleMode.BLOCK,
) -> RateLimitRule:
    return RateLimitRule(
        name=name,
        dimensions=dimensions,
        capacity=capacity,
        refill_tokens=capacity,
        refill_interval_ms=period_ms,
        mode=mode,
        ttl_ms=period_ms * 2,
    )


PASSWORD_RESET_REQUEST_POLICY = ActionPolicy(
    id="password_reset_request",
    rules=(
        _rule("per_ip", (KeyDimension.IP,), 5, TIME.MINUTE),
        _rule("per_email", (KeyDimension.EMAIL_HASH,), 3, 15 * TIME.MINUTE),
    ),
    fail_mode=FailMode.CLOSED,
)

# Registration fails open: a store outage must not stop sign-ups
REGISTER_POLICY = ActionPolicy(
    id="register",
    rules=(
        _rule("per_ip", (KeyDimension.IP,), 10, TIME.HOUR),
        _rule(
            "per_ip_email",
            (KeyDimension.IP, KeyDimension.EMAIL_HASH),
            3,
            TIME.HOUR,
            mode=RuleMode.CHALLENGE,
        ),
    ),
    fail_mode=FailMode.OPEN,
)

OTP_SEND_POLICY = ActionPolicy(
    id="otp_send",
    rules=(
        _rule("per_session", (KeyDimension.SESSION_ID,), 3, 10 * TIME.MINUTE),
        _rule("per_ip", (KeyDimension.IP,), 10, TIME.HOUR),
    ),
    fail_mode=FailMode.CLOSED,
)

OTP_VERIFY_POLICY = ActionPolicy(
    id="otp_verify",
    rules=(_rule("per_session", (KeyDimension.SESSION_ID,), 5, 10 * TIME.MINUTE),),
    fail_mode=FailMode.CLOSED,
)

LOGIN_POLICY = ActionPolicy(
    id="login",
    rules=(
        _rule("per_ip", (KeyDimension.IP,), 20, TIME.HOUR),
        _rule(
            "per_ip_email",
            (KeyDimension.IP, KeyDimension.EMAIL_HASH),
            5,
            15 * TIME.MINUTE,
        ),
    ),
    fail_mode=FailMode.CLOSED,
)

DEFAULT_POLICIES: Mapping[str, ActionPolicy] = MappingProxyType(
    {
        policy.id: policy
        for policy in (
            PASSWORD_RESET_REQUEST_POLICY,
            REGISTER_POLICY,
            OTP_SEND_POLICY,
            OTP_VERIFY_POLICY,
            LOGIN_POLICY,
        )
    }
)


def customize_policies(
    overrides: Mapping[str, Mapping[str, Any]],
) -> dict[str, ActionPolicy]:
    """Return the defaults with per-action overrides applied.

    An override for a known action replaces the given fields ("rules",
    "fail_mode") and keeps the rest. An override for an unknown action
    creates a new policy (no rules and fail closed unless given).

    Args:
        overrides: Action id to field overrides.

    Returns:
        dict[str, ActionPolicy]: New policy mapping. DEFAULT_POLICIES is
        left untouched.

    Raises:
        ValueError: If an override produces an invalid policy.
        TypeError: If an override names an unknown field.

    Example:
        policies = customize_policies({
            "login": {"fail_mode": FailMode.OPEN},
            "magic_link": {"rules": (per_ip_rule,)},
        })
    """
    policies = dict(DEFAULT_POLICIES)

    for action, fields in overrides.items():
        existing = policies.get(action)
        if existing is not None:
            policies[action] = replace(existing, **{**fields, "id": action})
        else:
            policies[action] = ActionPolicy(
                id=action,
                rules=tuple(fields.get("rules", ())),
                fail_mode=fields.get("fail_mode", FailMode.CLOSED),
            )

    return policies
