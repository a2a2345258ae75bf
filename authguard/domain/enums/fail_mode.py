"""Behavior of an action policy when the state store fails."""

from enum import Enum


class FailMode(str, Enum):
    """Store-failure behavior for an action.

    - OPEN: Allow the request (availability over security), e.g. registration.
    - CLOSED: Deny the request (security over availability), e.g. password
      reset, OTP, login.
    """

    OPEN = "open"
    CLOSED = "closed"
