"""Request context value object.

Built per request by the HTTP adapter (or any other caller) and handed to
`PolicyEngine.check()`. Well-known dimensions are typed fields; anything
else goes into `custom`.

Usage:
    context = RequestContext(
        action="login",
        ip="203.0.113.7",
        email_hash=hash_email(email, secret).value,
        custom={"tenant": "acme"},
    )
    context.get("ip")      # "203.0.113.7"
    context.get("tenant")  # "acme"
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from authguard.domain.enums import KeyDimension, as_known_dimension, dimension_tag


@dataclass(frozen=True, slots=True, kw_only=True)
class RequestContext:
    """Per-request dimension values.

    Attributes:
        action: The action being performed (selects the policy).
        ip: Client IP address.
        email_hash: Hashed email (never the raw address).
        phone_hash: Hashed phone number (never the raw number).
        user_id: Authenticated user id.
        session_id: Session id.
        route: Request path.
        custom: Additional dimension values keyed by custom tag.
    """

    action: str
    ip: str | None = None
    email_hash: str | None = None
    phone_hash: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    route: str | None = None
    custom: Mapping[str, str] = field(default_factory=dict)

    def get(self, dimension: KeyDimension | str) -> str | None:
        """Look up a dimension value.

        Well-known tags read the matching field; any other tag reads
        `custom`.

        Args:
            dimension: Dimension tag.

        Returns:
            str | None: The value, or None when absent.
        """
        known = (
            dimension
            if isinstance(dimension, KeyDimension)
            else as_known_dimension(dimension)
        )
        if known is not None:
            return getattr(self, known.context_field)
        return self.custom.get(dimension_tag(dimension))
