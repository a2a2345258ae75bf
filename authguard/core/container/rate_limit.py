"""Rate limiting dependency factories.

Usage:
    from authguard.core.container import get_rate_limiter, shutdown_rate_limiting

    limiter = get_rate_limiter()
    limiter.install(app)

    @asynccontextmanager
    async def lifespan(app):
        yield
        await shutdown_rate_limiting()
"""

from collections.abc import Mapping
from functools import lru_cache
from typing import TYPE_CHECKING

from authguard.core.config import get_settings
from authguard.core.container.infrastructure import (
    get_logger,
    get_metrics,
    get_store,
)
from authguard.core.result import Failure, Success

if TYPE_CHECKING:
    from authguard.domain.value_objects import ActionPolicy
    from authguard.presentation.rate_limit import RateLimiter
    from authguard.rate_limiter.policy_engine import PolicyEngine


@lru_cache()
def get_policies() -> Mapping[str, "ActionPolicy"]:
    """Return the active policies.

    Loaded from AUTHGUARD_POLICIES_FILE when set, otherwise the built-in
    defaults.

    Raises:
        ValueError: If the policy file is unreadable or invalid.
    """
    from authguard.rate_limiter.policies import DEFAULT_POLICIES
    from authguard.rate_limiter.policy_loader import load_policies_file

    settings = get_settings()
    if settings.policies_file is None:
        return DEFAULT_POLICIES

    match load_policies_file(settings.policies_file, logger=get_logger()):
        case Success(value=policies):
            return policies
        case Failure(error=error):
            raise ValueError(str(error))


@lru_cache()
def get_policy_engine() -> "PolicyEngine":
    """Return the policy engine singleton."""
    from authguard.rate_limiter.policy_engine import PolicyEngine

    return PolicyEngine(
        get_store(),
        get_policies(),
        logger=get_logger(),
        metrics=get_metrics(),
    )


@lru_cache()
def get_rate_limiter() -> "RateLimiter":
    """Return the FastAPI rate limiter singleton."""
    from authguard.presentation.rate_limit import RateLimiter

    return RateLimiter(
        get_policy_engine(),
        hash_secret=get_settings().hash_secret,
        logger=get_logger(),
        metrics=get_metrics(),
    )


async def shutdown_rate_limiting() -> None:
    """Shut the store down and drop the cached rate limiting singletons."""
    await get_store().shutdown()

    get_rate_limiter.cache_clear()
    get_policy_engine.cache_clear()
    get_policies.cache_clear()
    get_store.cache_clear()
