"""What a rule does once its bucket is empty."""

from enum import Enum


class RuleMode(str, Enum):
    """Rule behavior when the limit is exceeded.

    - BLOCK: Deny the request.
    - CHALLENGE: Let the request through, but signal that the caller must
      present a challenge (e.g., captcha).
    """

    BLOCK = "block"
    CHALLENGE = "challenge"
