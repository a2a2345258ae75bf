"""Domain enums for rate limiting.

Available Enums:
    - KeyDimension: Well-known request dimensions used to build keys
    - RuleMode: block or challenge when a rule's bucket is empty
    - FailMode: open or closed when the store fails
    - DecisionOutcome: ALLOWED, BLOCKED, CHALLENGE
"""

from authguard.domain.enums.decision_outcome import DecisionOutcome
from authguard.domain.enums.fail_mode import FailMode
from authguard.domain.enums.key_dimension import (
    KeyDimension,
    as_known_dimension,
    dimension_tag,
)
from authguard.domain.enums.rule_mode import RuleMode

__all__ = [
    "DecisionOutcome",
    "FailMode",
    "KeyDimension",
    "RuleMode",
    "as_known_dimension",
    "dimension_tag",
]
