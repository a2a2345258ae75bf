"""Key dimension tags.

A dimension is a named attribute of a request (IP, hashed email, session
id, ...) used to scope a rate limit key. Rules list the dimensions they key
on; the tag value is what appears inside the key string.

Usage:
    from authguard.domain.enums import KeyDimension

    rule = RateLimitRule(
        name="per_ip_email",
        dimensions=(KeyDimension.IP, KeyDimension.EMAIL_HASH),
        ...
    )

Custom dimensions are plain strings and are read from the request
context's `custom` mapping.
"""

from enum import Enum


class KeyDimension(str, Enum):
    """Well-known dimension tags.

    String Enum:
        Values are the tags used in key strings (e.g., "emailHash" in
        `login:per_email:emailHash=ab12...`).
    """

    IP = "ip"
    """Client IP address."""

    EMAIL_HASH = "emailHash"
    """HMAC of the normalized email address. Never the raw email."""

    PHONE_HASH = "phoneHash"
    """HMAC of the digits of a phone number. Never the raw number."""

    USER_ID = "userId"
    """Authenticated user identifier."""

    SESSION_ID = "sessionId"
    """Session identifier."""

    ACTION = "action"
    """The action being performed."""

    ROUTE = "route"
    """Request path."""

    @property
    def context_field(self) -> str:
        """Attribute name on RequestContext holding this dimension."""
        return _CONTEXT_FIELDS[self]

    @property
    def is_hashed(self) -> bool:
        """Whether values of this dimension are pseudonymized hashes."""
        return self in (KeyDimension.EMAIL_HASH, KeyDimension.PHONE_HASH)


_CONTEXT_FIELDS: dict[KeyDimension, str] = {
    KeyDimension.IP: "ip",
    KeyDimension.EMAIL_HASH: "email_hash",
    KeyDimension.PHONE_HASH: "phone_hash",
    KeyDimension.USER_ID: "user_id",
    KeyDimension.SESSION_ID: "session_id",
    KeyDimension.ACTION: "action",
    KeyDimension.ROUTE: "route",
}


def dimension_tag(dimension: "KeyDimension | str") -> str:
    """Return the plain string tag for a dimension.

    Args:
        dimension: A KeyDimension member or a custom tag string.

    Returns:
        str: The tag as it appears in key strings.
    """
    if isinstance(dimension, KeyDimension):
        return dimension.value
    return str(dimension)


def as_known_dimension(tag: str) -> KeyDimension | None:
    """Return the KeyDimension for a tag, or None for custom tags."""
    try:
        return KeyDimension(tag)
    except ValueError:
        return None
