"""FastAPI integration for the policy engine.

Each protected route declares a dependency built by
`RateLimiter.for_action()`. The dependency builds a RequestContext from the
request (client IP, route, hashed email/phone, session and user ids), asks
the engine for a decision and:

- BLOCKED: raises RateLimitExceeded, rendered as HTTP 429 with a
  Retry-After header (seconds, rounded up)
- CHALLENGE: lets the request through and adds X-RateLimit-Challenge to
  the response
- ALLOWED: lets the request through

The decision is stored on `request.state.rate_limit_decision` either way.

Usage:
    limiter = get_rate_limiter()
    limiter.install(app)

    @app.post("/auth/password-reset")
    async def request_reset(
        body: ResetRequest,
        decision: RateLimitDecision = Depends(
            limiter.for_action("password_reset_request", get_email=email_from_body)
        ),
    ):
        ...
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from authguard.core.constants import CHALLENGE_HEADER, RATE_LIMITED_ERROR
from authguard.core.result import Failure, Result, Success
from authguard.core.time import ms_to_seconds
from authguard.domain.enums import DecisionOutcome, FailMode
from authguard.domain.protocols import LoggerProtocol, RateLimitMetricsProtocol
from authguard.domain.value_objects import RateLimitDecision, RequestContext
from authguard.infrastructure.logging import NoOpLogger
from authguard.infrastructure.security import hash_email, hash_phone
from authguard.rate_limiter.decision import (
    create_allowed_decision,
    create_error_decision,
)
from authguard.rate_limiter.policy_engine import PolicyEngine

type RequestGetter = Callable[[Request], str | None | Awaitable[str | None]]
type SkipPredicate = Callable[[Request], bool]
type DecisionHook = Callable[[RateLimitDecision], None]


class RateLimitExceeded(Exception):
    """Raised by a rate limit dependency to short-circuit with HTTP 429."""

    def __init__(self, decision: RateLimitDecision) -> None:
        super().__init__(f"Rate limited: {decision.action}")
        self.decision = decision


def build_429_response(decision: RateLimitDecision) -> JSONResponse:
    """Render a blocked decision.

    Args:
        decision: Decision with allowed=False.

    Returns:
        JSONResponse: 429 with Retry-After in whole seconds, rounded up.
    """
    content: dict[str, Any] = {
        "error": RATE_LIMITED_ERROR,
        "action": decision.action,
        "retry_after_ms": decision.retry_after_ms,
        "outcome": decision.outcome.value,
    }
    if decision.challenge:
        content["challenge"] = decision.challenge

    return JSONResponse(
        status_code=429,
        content=content,
        headers={"Retry-After": str(ms_to_seconds(decision.retry_after_ms))},
    )


async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Exception handler for RateLimitExceeded."""
    return build_429_response(exc.decision)


def get_client_ip(request: Request) -> str | None:
    """Client IP: first X-Forwarded-For hop, then X-Real-IP, then the peer."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client:
        return request.client.host
    return None


class RateLimiter:
    """Builds per-action FastAPI dependencies around a PolicyEngine.

    Args:
        engine: Policy engine.
        hash_secret: HMAC secret for emails and phone numbers. Without it,
            email and phone dimensions stay empty (and rules keyed on them
            are skipped).
        logger: Structured logger.
        on_decision: Called with every decision the engine returns.
        metrics: Records fallback decisions made after an engine error
            (the engine records its own decisions).
    """

    def __init__(
        self,
        engine: PolicyEngine,
        *,
        hash_secret: str | None = None,
        logger: LoggerProtocol | None = None,
        on_decision: DecisionHook | None = None,
        metrics: RateLimitMetricsProtocol | None = None,
    ) -> None:
        self.engine = engine
        self._hash_secret = hash_secret
        self._logger = (logger or NoOpLogger()).bind(component="rate_limiter")
        self._on_decision = on_decision
        self._metrics = metrics

    def install(self, app: FastAPI) -> None:
        """Register the 429 exception handler on an application."""
        app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)

    def for_action(
        self,
        action: str,
        *,
        get_email: RequestGetter | None = None,
        get_phone: RequestGetter | None = None,
        get_session_id: RequestGetter | None = None,
        get_user_id: RequestGetter | None = None,
        skip: SkipPredicate | None = None,
        passive: bool = False,
    ) -> Callable[[Request, Response], Awaitable[RateLimitDecision]]:
        """Build the dependency for one action.

        Args:
            action: Action id (selects the policy).
            get_email: Reads the raw email from the request (sync or async).
            get_phone: Reads the raw phone number from the request.
            get_session_id: Reads the session id (default:
                request.state.session_id).
            get_user_id: Reads the user id (default: request.state.user_id).
            skip: Bypasses rate limiting when it returns True.
            passive: Evaluate and record, but never reject (for rolling out
                new limits).

        Returns:
            Dependency returning the RateLimitDecision.
        """
        policy = self.engine.get_policy(action)
        if not self._hash_secret and policy is not None:
            hashed_rules = [r.name for r in policy.rules if r.uses_hashed_dimension]
            if hashed_rules:
                self._logger.warning(
                    "No hash secret, email and phone rules will be skipped",
                    action=action,
                    rules=hashed_rules,
                )

        async def dependency(request: Request, response: Response) -> RateLimitDecision:
            if skip is not None and skip(request):
                self._logger.debug("Rate limiting skipped", action=action)
                decision = create_allowed_decision(action)
                request.state.rate_limit_decision = decision
                return decision

            try:
                context = await self._build_context(
                    request,
                    action,
                    get_email=get_email,
                    get_phone=get_phone,
                    get_session_id=get_session_id,
                    get_user_id=get_user_id,
                )
                decision = await self.engine.check(context)
                if self._on_decision is not None:
                    self._on_decision(decision)
            except Exception as e:
                decision = self._fallback_decision(action, e)

            request.state.rate_limit_decision = decision

            if passive:
                if not decision.allowed:
                    self._logger.info(
                        "Passive rate limit would block",
                        action=action,
                        retry_after_ms=decision.retry_after_ms,
                    )
                return decision

            if not decision.allowed:
                raise RateLimitExceeded(decision)

            if decision.outcome == DecisionOutcome.CHALLENGE:
                response.headers[CHALLENGE_HEADER] = decision.challenge or "required"

            return decision

        return dependency

    def _fallback_decision(self, action: str, error: Exception) -> RateLimitDecision:
        policy = self.engine.get_policy(action)
        fail_mode = policy.fail_mode if policy is not None else FailMode.CLOSED

        self._logger.error(
            "Rate limiter error", error=error, action=action, fail_mode=fail_mode.value
        )
        decision = create_error_decision(action, fail_mode, error)
        if self._metrics is not None:
            self._metrics.inc_requests(action, decision.outcome.value)
        return decision

    async def _build_context(
        self,
        request: Request,
        action: str,
        *,
        get_email: RequestGetter | None,
        get_phone: RequestGetter | None,
        get_session_id: RequestGetter | None,
        get_user_id: RequestGetter | None,
    ) -> RequestContext:
        email_hash = None
        phone_hash = None
        if self._hash_secret:
            if get_email is not None:
                email_hash = self._hashed(
                    await _read(get_email, request), hash_email, "email"
                )
            if get_phone is not None:
                phone_hash = self._hashed(
                    await _read(get_phone, request), hash_phone, "phone"
                )

        if get_session_id is not None:
            session_id = await _read(get_session_id, request)
        else:
            session_id = getattr(request.state, "session_id", None)

        if get_user_id is not None:
            user_id = await _read(get_user_id, request)
        else:
            user_id = getattr(request.state, "user_id", None)

        return RequestContext(
            action=action,
            ip=get_client_ip(request),
            email_hash=email_hash,
            phone_hash=phone_hash,
            user_id=user_id,
            session_id=session_id,
            route=request.url.path,
        )

    def _hashed(
        self,
        raw: str | None,
        hasher: Callable[[str, str], Result[str, Any]],
        kind: str,
    ) -> str | None:
        if not raw or not self._hash_secret:
            return None
        match hasher(raw, self._hash_secret):
            case Success(value=digest):
                return digest
            case Failure(error=error):
                self._logger.warning(
                    "Identifier could not be hashed", kind=kind, reason=error.message
                )
        return None


async def _read(getter: RequestGetter, request: Request) -> str | None:
    value = getter(request)
    if inspect.isawaitable(value):
        value = await value
    return value or None
