"""Identifier pseudonymization for rate limit keys.

Emails and phone numbers must never appear in keys or logs. They are
reduced to an HMAC-SHA256 hex digest first, keyed with a server secret so
the digests cannot be reversed by brute-forcing known addresses.

Normalization:
- hash_identifier / hash_email: trimmed and lower-cased
- hash_phone: digits only ("+1 (555) 010-0000" -> "15550100000")

Usage:
    match hash_email(email, settings.hash_secret):
        case Success(value=email_hash):
            context = RequestContext(action="login", ip=ip, email_hash=email_hash)
        case Failure(error=error):
            ...
"""

import hashlib
import hmac
import re

from authguard.core.enums import ErrorCode
from authguard.core.errors import ValidationError
from authguard.core.result import Failure, Result, Success

_NON_DIGITS = re.compile(r"\D")


def hash_identifier(identifier: str, secret: str) -> Result[str, ValidationError]:
    """HMAC-SHA256 of a normalized identifier.

    Args:
        identifier: Raw identifier.
        secret: HMAC key.

    Returns:
        Result[str, ValidationError]: 64-character hex digest, or an error for
        an empty identifier or secret.
    """
    if not identifier:
        return Failure(
            error=ValidationError(
                code=ErrorCode.IDENTIFIER_EMPTY,
                message="Identifier cannot be empty",
                field="identifier",
            )
        )
    if not secret:
        return Failure(
            error=ValidationError(
                code=ErrorCode.HASH_SECRET_EMPTY,
                message="Secret cannot be empty",
                field="secret",
            )
        )

    normalized = identifier.strip().lower()
    digest = hmac.new(
        secret.encode("utf-8"), normalized.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return Success(value=digest)


def hash_email(email: str, secret: str) -> Result[str, ValidationError]:
    """Hash an email address (case and surrounding whitespace ignored)."""
    return hash_identifier(email.strip().lower(), secret)


def hash_phone(phone: str, secret: str) -> Result[str, ValidationError]:
    """Hash a phone number by its digits alone.

    Returns:
        Result[str, ValidationError]: Digest, or PHONE_NUMBER_INVALID if the
        input has no digits.
    """
    digits = _NON_DIGITS.sub("", phone)
    if not digits:
        return Failure(
            error=ValidationError(
                code=ErrorCode.PHONE_NUMBER_INVALID,
                message="Phone number must contain digits",
                field="phone",
            )
        )
    return hash_identifier(digits, secret)


def hashes_match(identifier1: str, identifier2: str, secret: str) -> bool:
    """Whether two identifiers hash to the same value (constant-time compare).

    Identifiers that cannot be hashed never match.
    """
    first = hash_identifier(identifier1, secret)
    second = hash_identifier(identifier2, secret)
    if not (isinstance(first, Success) and isinstance(second, Success)):
        return False
    return hmac.compare_digest(first.value, second.value)
