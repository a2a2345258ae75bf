"""Machine-readable error codes.

Error codes follow ENTITY_ACTION_REASON naming convention and travel
inside DomainError values returned through Result types.
"""

from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes."""

    # Validation errors
    INVALID_DURATION = "invalid_duration"

    # Policy configuration errors
    POLICY_INVALID = "policy_invalid"
    POLICY_FILE_UNREADABLE = "policy_file_unreadable"

    # Identifier hashing errors
    IDENTIFIER_EMPTY = "identifier_empty"
    HASH_SECRET_EMPTY = "hash_secret_empty"
    PHONE_NUMBER_INVALID = "phone_number_invalid"
