"""Rate limit rule and action policy value objects.

Immutable configuration for the policy engine. A rule describes one token
bucket per distinct combination of its dimensions; an action policy groups
the rules that ALL must pass for an action, plus the action's store-failure
behavior.

Usage:
    from authguard.core.time import TIME
    from authguard.domain.enums import FailMode, KeyDimension, RuleMode
    from authguard.domain.value_objects import ActionPolicy, RateLimitRule

    policy = ActionPolicy(
        id="password_reset_request",
        rules=(
            RateLimitRule(
                name="per_ip",
                dimensions=(KeyDimension.IP,),
                capacity=5,
                refill_tokens=5,
                refill_interval_ms=TIME.MINUTE,
            ),
            RateLimitRule(
                name="per_email",
                dimensions=(KeyDimension.EMAIL_HASH,),
                capacity=3,
                refill_tokens=3,
                refill_interval_ms=15 * TIME.MINUTE,
            ),
        ),
        fail_mode=FailMode.CLOSED,
    )
"""

from collections.abc import Sequence
from dataclasses import dataclass

from authguard.core.constants import (
    DEFAULT_CHALLENGE_HINT,
    KEY_SEPARATOR,
    VALUE_SEPARATOR,
)
from authguard.domain.enums import (
    FailMode,
    RuleMode,
    as_known_dimension,
    dimension_tag,
)


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitRule:
    """Rate limit rule configuration (value object).

    Token Bucket Algorithm:
        - Bucket starts full (capacity)
        - Each request consumes `cost` tokens
        - `refill_tokens` are added every `refill_interval_ms`, pro rata
        - If not enough tokens, the rule fires according to `mode`

    Attributes:
        name: Unique name within the owning policy (e.g., "per_ip").
        dimensions: Ordered dimension tags forming the bucket key.
        capacity: Maximum tokens in the bucket (burst size).
        refill_tokens: Tokens added per refill interval.
        refill_interval_ms: Length of one refill interval in milliseconds.
        cost: Tokens consumed per request.
        mode: BLOCK or CHALLENGE when the bucket is empty.
        ttl_ms: Idle lifetime of the bucket entry. Defaults to twice the
            full-refill period when omitted.
        challenge_hint: Hint reported on CHALLENGE outcomes.

    Raises:
        ValueError: On an empty name or dimension list, non-positive
            capacity or cost, negative refill values, or a rule that never
            refills without an explicit ttl_ms.
    """

    name: str
    dimensions: tuple[str, ...]
    capacity: int
    refill_tokens: float
    refill_interval_ms: int
    cost: int = 1
    mode: RuleMode = RuleMode.BLOCK
    ttl_ms: int | None = None
    challenge_hint: str = DEFAULT_CHALLENGE_HINT

    def __post_init__(self) -> None:
        """Validate and normalize the rule.

        Raises:
            ValueError: If any field is invalid.
        """
        if not self.name:
            raise ValueError("name must not be empty")
        if KEY_SEPARATOR in self.name:
            raise ValueError(f"name must not contain '{KEY_SEPARATOR}': {self.name}")

        tags = tuple(dimension_tag(d) for d in self.dimensions)
        if not tags:
            raise ValueError(f"rule '{self.name}' must declare at least one dimension")
        for tag in tags:
            if not tag or KEY_SEPARATOR in tag or VALUE_SEPARATOR in tag:
                raise ValueError(
                    f"rule '{self.name}' has an invalid dimension tag: {tag!r}"
                )
        object.__setattr__(self, "dimensions", tags)
        object.__setattr__(self, "mode", RuleMode(self.mode))

        if self.capacity <= 0:
            raise ValueError(f"capacity must be positive, got {self.capacity}")
        if self.cost <= 0:
            raise ValueError(f"cost must be positive, got {self.cost}")
        if self.refill_tokens < 0:
            raise ValueError(
                f"refill_tokens must not be negative, got {self.refill_tokens}"
            )
        if self.refill_interval_ms < 0:
            raise ValueError(
                f"refill_interval_ms must not be negative, got {self.refill_interval_ms}"
            )
        if self.ttl_ms is not None and self.ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {self.ttl_ms}")
        if not self.refills and self.ttl_ms is None:
            raise ValueError(
                f"rule '{self.name}' never refills and needs an explicit ttl_ms"
            )

    @property
    def refills(self) -> bool:
        """Whether the bucket ever gains tokens back."""
        return self.refill_tokens > 0 and self.refill_interval_ms > 0

    @property
    def uses_hashed_dimension(self) -> bool:
        """Whether any key dimension carries a pseudonymized identifier."""
        return any(
            (known := as_known_dimension(tag)) is not None and known.is_hashed
            for tag in self.dimensions
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ActionPolicy:
    """Policy for one action (e.g., "password_reset_request").

    Rules are evaluated in declared order, but the combined outcome does not
    depend on that order (AND semantics, most restrictive wins).

    Attributes:
        id: Action identifier.
        rules: Rules that ALL must pass for the request to be allowed.
        fail_mode: OPEN or CLOSED when the store fails.

    Raises:
        ValueError: On an empty id or duplicate rule names.
    """

    id: str
    rules: tuple[RateLimitRule, ...]
    fail_mode: FailMode = FailMode.CLOSED

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("policy id must not be empty")
        if KEY_SEPARATOR in self.id:
            raise ValueError(f"policy id must not contain '{KEY_SEPARATOR}': {self.id}")

        rules = tuple(self.rules)
        names = [rule.name for rule in rules]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(
                f"policy '{self.id}' has duplicate rule names: {', '.join(duplicates)}"
            )
        object.__setattr__(self, "rules", rules)
        object.__setattr__(self, "fail_mode", FailMode(self.fail_mode))

    def get_rule(self, name: str) -> RateLimitRule | None:
        """Return the rule with the given name, if any."""
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None


def policies_by_id(policies: Sequence[ActionPolicy]) -> dict[str, ActionPolicy]:
    """Index policies by their action id.

    Args:
        policies: Policies to index.

    Returns:
        dict[str, ActionPolicy]: Mapping of action id to policy.

    Raises:
        ValueError: If two policies share an id.
    """
    indexed: dict[str, ActionPolicy] = {}
    for policy in policies:
        if policy.id in indexed:
            raise ValueError(f"duplicate policy id: {policy.id}")
        indexed[policy.id] = policy
    return indexed
