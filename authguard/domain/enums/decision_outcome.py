"""Outcome of a rule evaluation or of a whole rate limit decision."""

from enum import Enum


class DecisionOutcome(str, Enum):
    """Rate limit outcome.

    Precedence when combining rule outcomes is strict:
    BLOCKED > CHALLENGE > ALLOWED.
    """

    ALLOWED = "ALLOWED"
    BLOCKED = "BLOCKED"
    CHALLENGE = "CHALLENGE"
