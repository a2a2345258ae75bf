"""Policy engine: evaluates an action's rules against the bucket store.

Flow per check:
    1. Look up the policy for context.action (none -> ALLOWED)
    2. For each rule, in declared order:
       - build the key (missing dimension -> rule skipped)
       - load the bucket (absent or expired -> fresh full bucket)
       - consume the rule's cost and persist the new state
       - derive ALLOWED / BLOCKED / CHALLENGE from the rule's mode
    3. Combine the rule results (most restrictive wins)

Every rule is evaluated even after one blocks, so all buckets see the
attempt. A store failure aborts the check and the policy's fail mode
decides the outcome. Using a store after shutdown is not a store failure:
StoreShutdownError propagates to the caller.

Usage:
    engine = create_policy_engine(
        store=create_memory_store(),
        policies=DEFAULT_POLICIES,
        logger=get_logger(),
    )
    decision = await engine.check(RequestContext(action="login", ip=ip))
    if not decision.allowed:
        ...
"""

from __future__ import annotations

from collections.abc import Mapping
from time import perf_counter

from authguard.core.constants import SKIPPED_KEY
from authguard.core.time import Clock, SystemClock
from authguard.domain.enums import DecisionOutcome, RuleMode
from authguard.domain.errors import StoreShutdownError
from authguard.domain.protocols import (
    KeyExtractorProtocol,
    LoggerProtocol,
    RateLimitMetricsProtocol,
    RateLimitStoreProtocol,
)
from authguard.domain.value_objects import (
    ActionPolicy,
    RateLimitDecision,
    RateLimitRule,
    RequestContext,
    RuleResult,
)
from authguard.infrastructure.logging import NoOpLogger
from authguard.rate_limiter.decision import (
    combine_rule_results,
    create_allowed_decision,
    create_error_decision,
    format_decision_for_logging,
)
from authguard.rate_limiter.key_builder import (
    build_key,
    default_key_extractor,
    find_missing_dimensions,
)
from authguard.rate_limiter.token_bucket import (
    consume,
    create_bucket,
    default_ttl_ms,
    is_expired,
    rule_to_config,
)


class PolicyEngine:
    """Multi-rule rate limit evaluator.

    Args:
        store: Bucket state store.
        policies: Action id to policy. Read once; never mutated.
        key_extractor: Dimension value source (default reads the context).
        logger: Structured logger (default discards logs).
        clock: Time source in milliseconds.
        metrics: Optional metrics sink.
    """

    def __init__(
        self,
        store: RateLimitStoreProtocol,
        policies: Mapping[str, ActionPolicy],
        *,
        key_extractor: KeyExtractorProtocol | None = None,
        logger: LoggerProtocol | None = None,
        clock: Clock | None = None,
        metrics: RateLimitMetricsProtocol | None = None,
    ) -> None:
        self._store = store
        self._policies = dict(policies)
        self._key_extractor = key_extractor or default_key_extractor
        self._logger = (logger or NoOpLogger()).bind(component="policy_engine")
        self._clock = clock or SystemClock()
        self._metrics = metrics

    async def check(self, context: RequestContext) -> RateLimitDecision:
        """Decide whether a request may proceed.

        Args:
            context: Request context; context.action selects the policy.

        Returns:
            RateLimitDecision: The decision. Store failures are reported as
            fail-mode decisions with failed_due_to_error=True.

        Raises:
            StoreShutdownError: If the store has been shut down.
        """
        start = perf_counter()
        action = context.action
        policy = self._policies.get(action)

        if policy is None:
            self._logger.debug("No policy for action, allowing", action=action)
            decision = create_allowed_decision(action)
            await self._record(decision, start)
            return decision

        try:
            decision = await self._evaluate_policy(policy, context)
        except StoreShutdownError:
            raise
        except Exception as e:
            self._logger.error(
                "Store error during rate limit check",
                error=e,
                action=action,
                fail_mode=policy.fail_mode.value,
            )
            decision = create_error_decision(action, policy.fail_mode, e)

        await self._record(decision, start)
        return decision

    def get_policy(self, action: str) -> ActionPolicy | None:
        return self._policies.get(action)

    def list_actions(self) -> list[str]:
        return list(self._policies)

    async def _evaluate_policy(
        self, policy: ActionPolicy, context: RequestContext
    ) -> RateLimitDecision:
        results: list[RuleResult] = []
        keys: dict[str, str] = {}

        for rule in policy.rules:
            result = await self._evaluate_rule(policy.id, rule, context)
            if result.key != SKIPPED_KEY:
                keys[rule.name] = result.key
            results.append(result)

        return combine_rule_results(policy.id, results, keys)

    async def _evaluate_rule(
        self, action: str, rule: RateLimitRule, context: RequestContext
    ) -> RuleResult:
        key = build_key(action, rule, context, self._key_extractor)
        if key is None:
            self._logger.warning(
                "Rule skipped, missing dimensions",
                action=action,
                rule=rule.name,
                missing=find_missing_dimensions(
                    context, rule.dimensions, self._key_extractor
                ),
            )
            return RuleResult(
                rule_name=rule.name,
                key=SKIPPED_KEY,
                allowed=True,
                outcome=DecisionOutcome.ALLOWED,
                remaining_tokens=rule.capacity,
            )

        now = self._clock.now()
        config = rule_to_config(rule)
        ttl_ms = default_ttl_ms(rule)

        state = await self._store.get(key)
        if state is None or is_expired(state, now):
            state = create_bucket(config, now, ttl_ms)

        result = consume(state, config, rule.cost, now, ttl_ms)
        await self._store.set(key, result.bucket_state, ttl_ms)

        if result.allowed:
            outcome = DecisionOutcome.ALLOWED
        elif rule.mode == RuleMode.CHALLENGE:
            outcome = DecisionOutcome.CHALLENGE
        else:
            outcome = DecisionOutcome.BLOCKED

        return RuleResult(
            rule_name=rule.name,
            key=key,
            allowed=outcome != DecisionOutcome.BLOCKED,
            outcome=outcome,
            retry_after_ms=result.retry_after_ms,
            remaining_tokens=result.remaining_tokens,
            challenge=rule.challenge_hint if outcome == DecisionOutcome.CHALLENGE else None,
        )

    async def _record(self, decision: RateLimitDecision, start: float) -> None:
        duration_ms = (perf_counter() - start) * 1000
        fields = format_decision_for_logging(decision)

        if decision.allowed and decision.outcome == DecisionOutcome.ALLOWED:
            self._logger.debug("Rate limit decision", duration_ms=duration_ms, **fields)
        else:
            self._logger.info("Rate limit decision", duration_ms=duration_ms, **fields)

        if self._metrics is None:
            return

        self._metrics.inc_requests(decision.action, decision.outcome.value)
        self._metrics.observe_latency(decision.action, duration_ms)
        if decision.rule_results and not decision.failed_due_to_error:
            try:
                size = await self._store.size()
            except StoreShutdownError:
                raise
            except Exception as e:
                self._logger.warning(
                    "Store size unavailable, gauge not updated",
                    action=decision.action,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                return
            self._metrics.set_store_size(size)


def create_policy_engine(
    store: RateLimitStoreProtocol,
    policies: Mapping[str, ActionPolicy],
    *,
    key_extractor: KeyExtractorProtocol | None = None,
    logger: LoggerProtocol | None = None,
    clock: Clock | None = None,
    metrics: RateLimitMetricsProtocol | None = None,
) -> PolicyEngine:
    """Build a PolicyEngine (keyword-friendly factory)."""
    return PolicyEngine(
        store,
        policies,
        key_extractor=key_extractor,
        logger=logger,
        clock=clock,
        metrics=metrics,
    )
