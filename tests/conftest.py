"""Shared pytest configuration and fixtures.

Time is controlled with ManualClock wherever a component accepts a clock;
freezegun is used where wall-clock time is read directly.
"""

import inspect

import pytest
import pytest_asyncio

from authguard.core.time import ManualClock
from authguard.domain.enums import FailMode, KeyDimension, RuleMode
from authguard.domain.value_objects import ActionPolicy, RateLimitRule, RequestContext
from authguard.infrastructure.rate_limit import BoundedMemoryStore, MemoryStoreOptions

# Arbitrary fixed epoch so tests never start at 0
T0 = 1_700_000_000_000


def make_rule(
    name: str = "per_ip",
    dimensions: tuple[KeyDimension | str, ...] = (KeyDimension.IP,),
    capacity: int = 5,
    refill_tokens: float = 5,
    refill_interval_ms: int = 60_000,
    **kwargs,
) -> RateLimitRule:
    """Helper to create a RateLimitRule with test defaults."""
    return RateLimitRule(
        name=name,
        dimensions=dimensions,
        capacity=capacity,
        refill_tokens=refill_tokens,
        refill_interval_ms=refill_interval_ms,
        **kwargs,
    )


def make_policy(
    id: str = "password_reset_request",
    rules: tuple[RateLimitRule, ...] | None = None,
    fail_mode: FailMode = FailMode.CLOSED,
) -> ActionPolicy:
    """Helper to create an ActionPolicy (one per-IP rule by default)."""
    return ActionPolicy(id=id, rules=rules or (make_rule(),), fail_mode=fail_mode)


def make_context(action: str = "password_reset_request", **kwargs) -> RequestContext:
    """Helper to create a RequestContext with an IP set."""
    kwargs.setdefault("ip", "203.0.113.7")
    return RequestContext(action=action, **kwargs)


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock starting at T0."""
    return ManualClock(T0)


@pytest_asyncio.fixture
async def store(clock: ManualClock):
    """Memory store on the manual clock, sweeper disabled, shut down after."""
    memory_store = BoundedMemoryStore(
        MemoryStoreOptions(sweep_interval_ms=0), clock=clock
    )
    yield memory_store
    await memory_store.shutdown()


@pytest.fixture
def challenge_rule() -> RateLimitRule:
    """Per IP+email rule that challenges instead of blocking."""
    return make_rule(
        name="per_ip_email",
        dimensions=(KeyDimension.IP, KeyDimension.EMAIL_HASH),
        capacity=3,
        refill_tokens=3,
        refill_interval_ms=3_600_000,
        mode=RuleMode.CHALLENGE,
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "api: API tests through a FastAPI app")
    config.addinivalue_line("markers", "asyncio: Async test that requires event loop")


def pytest_collection_modifyitems(config, items):
    """Automatically add asyncio marker to async test functions."""
    for item in items:
        function = getattr(item, "function", None)
        if function is not None and inspect.iscoroutinefunction(function):
            item.add_marker(pytest.mark.asyncio)
