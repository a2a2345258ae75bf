"""Policy document loading.

Policies can be supplied as a JSON document instead of code:

    {
      "policies": {
        "login": {
          "fail_mode": "closed",
          "rules": [
            {
              "name": "per_ip",
              "dimensions": ["ip"],
              "capacity": 20,
              "refill_tokens": 20,
              "refill_interval": "1h",
              "ttl": "2h"
            }
          ]
        }
      }
    }

Durations are either integer milliseconds or strings like "30s", "15m",
"1h", "1d". Loading never raises for bad input: problems come back as a
Failure carrying a ValidationError with the offending field path.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from authguard.core.constants import DEFAULT_CHALLENGE_HINT
from authguard.core.enums import ErrorCode
from authguard.core.errors import ValidationError
from authguard.core.result import Failure, Result, Success
from authguard.core.time import parse_duration
from authguard.domain.enums import FailMode, RuleMode
from authguard.domain.protocols import LoggerProtocol
from authguard.domain.value_objects import ActionPolicy, RateLimitRule
from authguard.infrastructure.logging import NoOpLogger


def _duration_ms(value: Any) -> Any:
    if isinstance(value, str):
        match parse_duration(value):
            case Success(value=ms):
                return ms
            case Failure(error=error):
                raise ValueError(error.message)
    return value


class RuleDocument(BaseModel):
    """One rule in a policy document."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Rule name, unique per policy")
    dimensions: list[str] = Field(..., min_length=1, description="Key dimension tags")
    capacity: int = Field(..., gt=0, description="Bucket size")
    refill_tokens: float = Field(..., ge=0, description="Tokens added per interval")
    refill_interval: int = Field(..., ge=0, description="Refill interval (ms or '15m')")
    cost: int = Field(default=1, gt=0, description="Tokens per request")
    mode: RuleMode = Field(default=RuleMode.BLOCK)
    ttl: int | None = Field(default=None, gt=0, description="Entry TTL (ms or '2h')")
    challenge_hint: str = Field(default=DEFAULT_CHALLENGE_HINT)

    @field_validator("refill_interval", "ttl", mode="before")
    @classmethod
    def parse_durations(cls, v: Any) -> Any:
        """Accept "15m"-style duration strings."""
        return _duration_ms(v)

    def to_rule(self) -> RateLimitRule:
        return RateLimitRule(
            name=self.name,
            dimensions=tuple(self.dimensions),
            capacity=self.capacity,
            refill_tokens=self.refill_tokens,
            refill_interval_ms=self.refill_interval,
            cost=self.cost,
            mode=self.mode,
            ttl_ms=self.ttl,
            challenge_hint=self.challenge_hint,
        )


class PolicyDocumentEntry(BaseModel):
    """One action's policy in a policy document."""

    model_config = ConfigDict(extra="forbid")

    fail_mode: FailMode = Field(default=FailMode.CLOSED)
    rules: list[RuleDocument] = Field(default_factory=list)


class PolicyDocument(BaseModel):
    """Root of a policy document."""

    model_config = ConfigDict(extra="forbid")

    policies: dict[str, PolicyDocumentEntry]


def _invalid(message: str, field: str | None = None) -> Failure[ValidationError]:
    return Failure(
        error=ValidationError(
            code=ErrorCode.POLICY_INVALID,
            message=message,
            field=field,
        )
    )


def _from_pydantic(exc: PydanticValidationError) -> Failure[ValidationError]:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    return _invalid(first["msg"], field)


def _build(document: PolicyDocument) -> Result[dict[str, ActionPolicy], ValidationError]:
    policies: dict[str, ActionPolicy] = {}
    for action, entry in document.policies.items():
        try:
            policies[action] = ActionPolicy(
                id=action,
                rules=tuple(rule.to_rule() for rule in entry.rules),
                fail_mode=entry.fail_mode,
            )
        except ValueError as e:
            return _invalid(str(e), f"policies.{action}")
    return Success(value=policies)


def load_policies(
    data: Mapping[str, Any],
) -> Result[dict[str, ActionPolicy], ValidationError]:
    """Validate a policy document mapping.

    Args:
        data: Parsed document (e.g., from json.load).

    Returns:
        Result[dict[str, ActionPolicy], ValidationError]: Action id to policy,
        or the first validation problem found.
    """
    try:
        document = PolicyDocument.model_validate(data)
    except PydanticValidationError as e:
        return _from_pydantic(e)
    return _build(document)


def load_policies_file(
    path: str | Path,
    *,
    logger: LoggerProtocol | None = None,
) -> Result[dict[str, ActionPolicy], ValidationError]:
    """Read and validate a JSON policy document.

    Args:
        path: Path to the JSON file.
        logger: Structured logger.

    Returns:
        Result[dict[str, ActionPolicy], ValidationError]: Action id to policy,
        POLICY_FILE_UNREADABLE if the file cannot be read, or POLICY_INVALID.
    """
    logger = logger or NoOpLogger()

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Policy file unreadable", error=e, path=str(path))
        return Failure(
            error=ValidationError(
                code=ErrorCode.POLICY_FILE_UNREADABLE,
                message=f"Cannot read policy file {path}: {e}",
                field="policies_file",
            )
        )

    try:
        document = PolicyDocument.model_validate_json(text)
    except PydanticValidationError as e:
        result: Result[dict[str, ActionPolicy], ValidationError] = _from_pydantic(e)
    else:
        result = _build(document)

    match result:
        case Success(value=policies):
            logger.info("Policies loaded", path=str(path), actions=sorted(policies))
        case Failure(error=error):
            logger.warning(
                "Policy file rejected",
                path=str(path),
                field=error.field,
                reason=error.message,
            )
    return result
