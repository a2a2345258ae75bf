"""Unit tests for PolicyEngine.

Tests cover:
- Multi-rule AND semantics (per-IP and per-email)
- Challenge mode
- Missing dimensions (rule skipped)
- Fail-open / fail-closed on store errors (AsyncMock store)
- StoreShutdownError propagation
- Logging and metrics hooks
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from authguard.domain.enums import DecisionOutcome, FailMode, KeyDimension
from authguard.domain.errors import StoreShutdownError
from authguard.rate_limiter.policy_engine import PolicyEngine, create_policy_engine
from tests.conftest import make_context, make_policy, make_rule

EMAIL_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def two_rule_policy(fail_mode: FailMode = FailMode.CLOSED):
    return make_policy(
        rules=(
            make_rule(capacity=10, refill_tokens=10, refill_interval_ms=60_000),
            make_rule(
                name="per_email",
                dimensions=(KeyDimension.EMAIL_HASH,),
                capacity=3,
                refill_tokens=3,
                refill_interval_ms=60_000,
            ),
        ),
        fail_mode=fail_mode,
    )


@pytest.fixture
def engine(store, clock):
    """Engine with the two-rule password reset policy on the memory store."""
    policy = two_rule_policy()
    return PolicyEngine(store, {policy.id: policy}, clock=clock)


@pytest.fixture
def failing_store():
    """Store whose get() raises a connection error."""
    mock_store = AsyncMock()
    mock_store.get.side_effect = ConnectionError("store unavailable")
    return mock_store


@pytest.mark.unit
class TestPolicyEvaluation:
    """Tests for check() against the memory store."""

    async def test_first_request_allowed_with_keys(self, engine):
        """Should allow and report the key of every evaluated rule."""
        decision = await engine.check(make_context(email_hash=EMAIL_HASH))

        assert decision.allowed is True
        assert decision.outcome == DecisionOutcome.ALLOWED
        assert decision.keys == {
            "per_ip": "password_reset_request:per_ip:ip=203.0.113.7",
            "per_email": f"password_reset_request:per_email:emailHash={EMAIL_HASH}",
        }
        assert [r.remaining_tokens for r in decision.rule_results] == [9, 2]

    async def test_email_rule_blocks_before_ip_rule(self, engine):
        """Should block the 4th request for one email while per-IP has capacity."""
        context = make_context(email_hash=EMAIL_HASH)
        for _ in range(3):
            assert (await engine.check(context)).allowed is True

        decision = await engine.check(context)

        assert decision.allowed is False
        assert decision.outcome == DecisionOutcome.BLOCKED
        assert decision.failed_rules == ["per_email"]
        per_ip, per_email = decision.rule_results
        assert per_ip.outcome == DecisionOutcome.ALLOWED
        assert per_ip.remaining_tokens == 6
        assert per_email.outcome == DecisionOutcome.BLOCKED
        assert decision.retry_after_ms == per_email.retry_after_ms == 20_000

    async def test_every_rule_evaluated_after_block(self, store, clock):
        """Should keep charging later rules after an earlier one blocks."""
        policy = make_policy(
            rules=(
                make_rule(name="tight", capacity=1, refill_tokens=1),
                make_rule(name="loose", capacity=10, refill_tokens=10),
            )
        )
        tight_first = PolicyEngine(store, {policy.id: policy}, clock=clock)
        context = make_context()

        await tight_first.check(context)
        decision = await tight_first.check(context)

        assert decision.outcome == DecisionOutcome.BLOCKED
        assert decision.rule_results[1].rule_name == "loose"
        assert decision.rule_results[1].remaining_tokens == 8

    async def test_tokens_refill_over_time(self, engine, clock):
        """Should allow again once the blocking bucket has refilled."""
        context = make_context(email_hash=EMAIL_HASH)
        for _ in range(3):
            await engine.check(context)
        blocked = await engine.check(context)

        clock.advance(blocked.retry_after_ms)

        assert (await engine.check(context)).allowed is True

    async def test_buckets_are_per_dimension_value(self, engine):
        """Should track different emails separately."""
        for _ in range(3):
            await engine.check(make_context(email_hash="aaa"))

        assert (await engine.check(make_context(email_hash="aaa"))).allowed is False
        assert (await engine.check(make_context(email_hash="bbb"))).allowed is True

    async def test_expired_bucket_starts_full(self, store, clock):
        """Should replace an expired bucket with a full one."""
        policy = make_policy(
            rules=(make_rule(capacity=1, refill_tokens=0, ttl_ms=10_000),)
        )
        engine = PolicyEngine(store, {policy.id: policy}, clock=clock)
        context = make_context()

        await engine.check(context)
        assert (await engine.check(context)).allowed is False

        clock.advance(10_000)

        assert (await engine.check(context)).allowed is True

    async def test_cost_is_applied(self, store, clock):
        """Should consume the rule's cost per request."""
        policy = make_policy(rules=(make_rule(capacity=5, cost=2),))
        engine = PolicyEngine(store, {policy.id: policy}, clock=clock)

        decision = await engine.check(make_context())

        assert decision.rule_results[0].remaining_tokens == 3


@pytest.mark.unit
class TestChallengeAndSkip:
    """Tests for challenge mode, missing dimensions and unknown actions."""

    async def test_challenge_lets_request_through(self, store, clock, challenge_rule):
        """Should answer CHALLENGE with the hint once the bucket is empty."""
        policy = make_policy(id="register", rules=(challenge_rule,))
        engine = PolicyEngine(store, {policy.id: policy}, clock=clock)
        context = make_context(action="register", email_hash=EMAIL_HASH)
        for _ in range(3):
            await engine.check(context)

        decision = await engine.check(context)

        assert decision.allowed is True
        assert decision.outcome == DecisionOutcome.CHALLENGE
        assert decision.challenge == "captcha_required"
        assert decision.retry_after_ms == 1_200_000
        assert decision.rule_results[0].allowed is True

    async def test_missing_dimension_skips_rule(self, engine):
        """Should skip rules whose dimensions are absent, whatever the fail mode."""
        decision = await engine.check(make_context())

        assert decision.allowed is True
        per_ip, per_email = decision.rule_results
        assert per_ip.key.startswith("password_reset_request:per_ip:")
        assert per_email.key == "skipped"
        assert per_email.outcome == DecisionOutcome.ALLOWED
        assert per_email.remaining_tokens == 3
        assert "per_email" not in decision.keys

    async def test_unknown_action_is_allowed(self, engine, store):
        """Should allow actions without a policy and touch no bucket."""
        decision = await engine.check(make_context(action="unknown"))

        assert decision.allowed is True
        assert decision.rule_results == ()
        assert await store.size() == 0

    def test_policy_lookup(self, engine):
        """Should expose the configured policies."""
        assert engine.list_actions() == ["password_reset_request"]
        assert engine.get_policy("password_reset_request").rules[1].name == "per_email"
        assert engine.get_policy("unknown") is None


@pytest.mark.unit
class TestStoreFailures:
    """Tests for fail-open / fail-closed behavior."""

    async def test_fail_closed(self, failing_store):
        """Should block with failed_due_to_error when the store fails."""
        policy = two_rule_policy(FailMode.CLOSED)
        engine = PolicyEngine(failing_store, {policy.id: policy})

        decision = await engine.check(make_context(email_hash=EMAIL_HASH))

        assert decision.allowed is False
        assert decision.outcome == DecisionOutcome.BLOCKED
        assert decision.failed_due_to_error is True
        assert decision.error == "store unavailable"
        failing_store.set.assert_not_awaited()

    async def test_fail_open(self, failing_store):
        """Should allow with failed_due_to_error when the store fails."""
        policy = two_rule_policy(FailMode.OPEN)
        engine = PolicyEngine(failing_store, {policy.id: policy})

        decision = await engine.check(make_context(email_hash=EMAIL_HASH))

        assert decision.allowed is True
        assert decision.outcome == DecisionOutcome.ALLOWED
        assert decision.failed_due_to_error is True

    async def test_set_failure_is_a_store_failure(self):
        """Should apply the fail mode when set() fails too."""
        mock_store = AsyncMock()
        mock_store.get.return_value = None
        mock_store.set.side_effect = TimeoutError("slow")
        policy = two_rule_policy(FailMode.CLOSED)
        engine = PolicyEngine(mock_store, {policy.id: policy})

        decision = await engine.check(make_context())

        assert decision.failed_due_to_error is True
        assert decision.allowed is False

    async def test_shutdown_store_propagates(self, engine, store):
        """Should raise instead of falling back when the store was shut down."""
        await store.shutdown()

        with pytest.raises(StoreShutdownError):
            await engine.check(make_context())


@pytest.mark.unit
class TestObservability:
    """Tests for logging and metrics hooks."""

    async def test_metrics_recorded(self, store, clock):
        """Should count, time and size every evaluated decision."""
        metrics = MagicMock()
        policy = two_rule_policy()
        engine = create_policy_engine(
            store, {policy.id: policy}, clock=clock, metrics=metrics
        )

        await engine.check(make_context(email_hash=EMAIL_HASH))

        metrics.inc_requests.assert_called_once_with("password_reset_request", "ALLOWED")
        metrics.observe_latency.assert_called_once()
        metrics.set_store_size.assert_called_once_with(2)

    async def test_error_decision_metrics_skip_store_size(self, failing_store):
        """Should not query the failing store for its size."""
        metrics = MagicMock()
        policy = two_rule_policy()
        engine = PolicyEngine(failing_store, {policy.id: policy}, metrics=metrics)

        await engine.check(make_context())

        metrics.inc_requests.assert_called_once_with("password_reset_request", "BLOCKED")
        metrics.set_store_size.assert_not_called()
        failing_store.size.assert_not_awaited()

    async def test_store_size_failure_keeps_decision(self, clock):
        """Should return the evaluated decision when size() fails."""
        mock_store = AsyncMock()
        mock_store.get.return_value = None
        mock_store.size.side_effect = ConnectionError("store unavailable")
        metrics = MagicMock()
        logger = MagicMock()
        logger.bind.return_value = logger
        policy = two_rule_policy()
        engine = PolicyEngine(
            mock_store, {policy.id: policy}, clock=clock, metrics=metrics, logger=logger
        )

        decision = await engine.check(make_context(email_hash=EMAIL_HASH))

        assert decision.allowed is True
        assert decision.failed_due_to_error is False
        assert mock_store.set.await_count == 2
        metrics.inc_requests.assert_called_once_with("password_reset_request", "ALLOWED")
        metrics.set_store_size.assert_not_called()
        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs["error_type"] == "ConnectionError"

    async def test_store_size_shutdown_propagates(self, clock):
        """Should not hide a shut down store behind the metrics path."""
        mock_store = AsyncMock()
        mock_store.get.return_value = None
        mock_store.size.side_effect = StoreShutdownError("MemoryStore")
        policy = two_rule_policy()
        engine = PolicyEngine(
            mock_store, {policy.id: policy}, clock=clock, metrics=MagicMock()
        )

        with pytest.raises(StoreShutdownError):
            await engine.check(make_context(email_hash=EMAIL_HASH))

    async def test_store_error_logged(self, failing_store):
        """Should log the store failure at error level."""
        logger = MagicMock()
        logger.bind.return_value = logger
        policy = two_rule_policy()
        engine = PolicyEngine(failing_store, {policy.id: policy}, logger=logger)

        await engine.check(make_context())

        logger.bind.assert_called_once_with(component="policy_engine")
        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["action"] == "password_reset_request"
        assert isinstance(logger.error.call_args.kwargs["error"], ConnectionError)

    async def test_missing_dimension_logged(self, store, clock):
        """Should warn with the missing dimension tags."""
        logger = MagicMock()
        logger.bind.return_value = logger
        policy = two_rule_policy()
        logged = PolicyEngine(store, {policy.id: policy}, logger=logger, clock=clock)

        await logged.check(make_context())

        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs["missing"] == ["emailHash"]
