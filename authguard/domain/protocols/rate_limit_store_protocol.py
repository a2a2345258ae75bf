"""Rate limit store protocol (port).

The store persists BucketState values keyed by string. Infrastructure
provides adapters (BoundedMemoryStore for in-process use); any alternative
implementation must honor the same expiry contract.

Contract:
    - get/has perform lazy expiry: an entry whose expires_at has passed is
      treated as absent (and may be deleted) even if no sweep ran yet.
    - After shutdown(), every other operation raises StoreShutdownError.
      shutdown() itself is idempotent.
    - Infrastructure faults are raised, not swallowed. The policy engine
      owns fail-open / fail-closed handling.

Concurrency:
    The policy engine performs get -> compute -> set per key. A store that
    is shared across OS threads or delegates to a network service must add
    per-key mutual exclusion (or optimistic retry) around that sequence to
    keep tokens from being spent twice. The in-memory store relies on the
    event loop never switching tasks between its read and its write.
"""

from typing import Protocol

from authguard.domain.value_objects import BucketState


class RateLimitStoreProtocol(Protocol):
    """Protocol for bucket state stores."""

    async def get(self, key: str) -> BucketState | None:
        """Return the bucket state for a key, or None if absent/expired.

        Raises:
            StoreShutdownError: If the store has been shut down.
        """
        ...

    async def set(self, key: str, state: BucketState, ttl_ms: int) -> None:
        """Store the bucket state for a key.

        Args:
            key: Bucket key.
            state: State to store.
            ttl_ms: Time-to-live hint. Expiry itself is driven by
                state.expires_at.

        Raises:
            StoreShutdownError: If the store has been shut down.
        """
        ...

    async def delete(self, key: str) -> None:
        """Delete a bucket entry (no-op if absent)."""
        ...

    async def has(self, key: str) -> bool:
        """Return whether a live (unexpired) entry exists for the key."""
        ...

    async def size(self) -> int:
        """Return the number of stored entries (may include unswept expired ones)."""
        ...

    async def clear(self) -> None:
        """Remove all entries."""
        ...

    async def shutdown(self) -> None:
        """Stop background work and release state. Idempotent."""
        ...
