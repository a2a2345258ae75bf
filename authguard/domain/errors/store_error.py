"""Store exceptions.

Unlike DomainError values, these are raised. A store fault during a check
is converted into a fail-mode decision by the policy engine; using a store
after shutdown is a caller bug and surfaces as-is.
"""


class StoreError(Exception):
    """Base class for rate limit store failures."""


class StoreShutdownError(StoreError):
    """Raised by every store operation once the store has been shut down."""

    def __init__(self, store_name: str = "store") -> None:
        super().__init__(f"{store_name} has been shut down")
        self.store_name = store_name
