"""Bounded in-memory bucket store.

Single-process store for BucketState values with three ways of reclaiming
memory:

1. Lazy expiry: get()/has() drop an entry whose expires_at has passed.
2. Background sweep: an asyncio task periodically drops every expired entry.
3. High-water-mark eviction: inserting a NEW key when the store is full
   first evicts down to `high_water_mark - eviction_count` entries, expired
   entries first, then least recently accessed.

Concurrency:
    All methods run on one event loop and none of them awaits while
    mutating the map, so no locks are needed. A get -> compute -> set
    sequence for one key is not interleaved within a single engine check.

Usage:
    from authguard.infrastructure.rate_limit import create_memory_store

    store = create_memory_store(high_water_mark=50_000)
    ...
    await store.shutdown()
"""

from __future__ import annotations

import asyncio
import contextlib
import heapq
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, model_validator

from authguard.core.constants import (
    DEFAULT_EVICTION_RATIO,
    DEFAULT_HIGH_WATER_MARK,
    DEFAULT_SWEEP_INTERVAL_MS,
)
from authguard.core.time import Clock, SystemClock
from authguard.domain.errors import StoreShutdownError
from authguard.domain.protocols import LoggerProtocol
from authguard.domain.value_objects import BucketState
from authguard.infrastructure.logging import NoOpLogger


class MemoryStoreOptions(BaseModel):
    """Memory store sizing.

    Attributes:
        sweep_interval_ms: Milliseconds between background sweeps. 0 or
            less disables the sweeper.
        high_water_mark: Entry count at which inserting a new key evicts.
        eviction_count: Entries removed per eviction. Defaults to 10% of
            the high-water mark (at least 1).
    """

    model_config = ConfigDict(frozen=True)

    sweep_interval_ms: int = DEFAULT_SWEEP_INTERVAL_MS
    high_water_mark: int = Field(default=DEFAULT_HIGH_WATER_MARK, gt=0)
    eviction_count: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def validate_eviction_count(self) -> MemoryStoreOptions:
        if self.eviction_count is not None and self.eviction_count > self.high_water_mark:
            raise ValueError("eviction_count must not exceed high_water_mark")
        return self

    @property
    def effective_eviction_count(self) -> int:
        """Eviction count with the default applied."""
        if self.eviction_count is not None:
            return self.eviction_count
        return max(1, int(self.high_water_mark * DEFAULT_EVICTION_RATIO))


@dataclass(slots=True)
class StoreEntry:
    """Stored bucket state plus access bookkeeping for eviction."""

    state: BucketState
    last_accessed_at: int


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreStats:
    """Store utilization snapshot."""

    size: int
    high_water_mark: int
    utilization_percent: float


class BoundedMemoryStore:
    """In-memory RateLimitStoreProtocol implementation.

    Args:
        options: Sizing options.
        clock: Time source for expiry and access tracking.
        logger: Structured logger.
    """

    def __init__(
        self,
        options: MemoryStoreOptions | None = None,
        *,
        clock: Clock | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._options = options or MemoryStoreOptions()
        self._clock = clock or SystemClock()
        self._logger = (logger or NoOpLogger()).bind(component="memory_store")
        # dicts keep insertion order, which breaks eviction ties
        self._entries: dict[str, StoreEntry] = {}
        self._sweeper: asyncio.Task[None] | None = None
        self._is_shutdown = False

        with contextlib.suppress(RuntimeError):
            self._ensure_sweeper()

    @property
    def options(self) -> MemoryStoreOptions:
        return self._options

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    # -------------------------------------------------------------------------
    # RateLimitStoreProtocol
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> BucketState | None:
        """Return the live state for a key, refreshing its access time."""
        self._check_shutdown()

        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock.now()
        if now >= entry.state.expires_at:
            del self._entries[key]
            self._logger.debug("Entry expired on access", key=key)
            return None

        entry.last_accessed_at = now
        return entry.state

    async def set(self, key: str, state: BucketState, ttl_ms: int) -> None:
        """Store a state. Expiry follows state.expires_at; ttl_ms is unused."""
        self._check_shutdown()

        now = self._clock.now()
        entry = self._entries.get(key)
        if entry is not None:
            entry.state = state
            entry.last_accessed_at = now
            return

        if len(self._entries) >= self._options.high_water_mark:
            self.evict()
        self._entries[key] = StoreEntry(state=state, last_accessed_at=now)

    async def delete(self, key: str) -> None:
        self._check_shutdown()
        self._entries.pop(key, None)

    async def has(self, key: str) -> bool:
        self._check_shutdown()

        entry = self._entries.get(key)
        if entry is None:
            return False

        if self._clock.now() >= entry.state.expires_at:
            del self._entries[key]
            return False
        return True

    async def size(self) -> int:
        """Entry count. May include expired entries not yet swept."""
        self._check_shutdown()
        return len(self._entries)

    async def clear(self) -> None:
        self._check_shutdown()
        self._entries.clear()
        self._logger.info("Store cleared")

    async def shutdown(self) -> None:
        """Cancel the sweeper and drop all state. Safe to call repeatedly."""
        if self._is_shutdown:
            return
        self._is_shutdown = True

        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None and not sweeper.done():
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

        self._entries.clear()
        self._logger.info("Memory store shutdown complete")

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def sweep(self) -> int:
        """Drop every expired entry.

        Returns:
            int: Number of entries removed.
        """
        now = self._clock.now()
        expired = [
            key for key, entry in self._entries.items() if now >= entry.state.expires_at
        ]
        for key in expired:
            del self._entries[key]

        if expired:
            self._logger.debug(
                "Sweep completed",
                evicted_count=len(expired),
                remaining_count=len(self._entries),
            )
        return len(expired)

    def evict(self) -> int:
        """Shrink the store to `high_water_mark - eviction_count` entries.

        Phase 1 drops expired entries (in insertion order) until the target
        is reached. Phase 2 drops the least recently accessed entries;
        entries with equal access times go in insertion order.

        Returns:
            int: Number of entries removed.
        """
        target = self._options.high_water_mark - self._options.effective_eviction_count
        now = self._clock.now()
        evicted = 0

        for key in list(self._entries):
            if len(self._entries) <= target:
                break
            if now >= self._entries[key].state.expires_at:
                del self._entries[key]
                evicted += 1

        overflow = len(self._entries) - target
        if overflow > 0:
            # nsmallest is stable, so insertion order breaks ties
            oldest = heapq.nsmallest(
                overflow,
                self._entries.items(),
                key=lambda item: item[1].last_accessed_at,
            )
            for key, _ in oldest:
                del self._entries[key]
            evicted += len(oldest)

        self._logger.warning(
            "High water mark eviction triggered",
            evicted_count=evicted,
            remaining_count=len(self._entries),
            high_water_mark=self._options.high_water_mark,
        )
        return evicted

    def get_stats(self) -> StoreStats:
        """Current size against the high-water mark."""
        size = len(self._entries)
        return StoreStats(
            size=size,
            high_water_mark=self._options.high_water_mark,
            utilization_percent=size / self._options.high_water_mark * 100,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_shutdown(self) -> None:
        if self._is_shutdown:
            raise StoreShutdownError("MemoryStore")
        self._ensure_sweeper()

    def _ensure_sweeper(self) -> None:
        """Start the sweeper on the running loop if it is not running yet.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        if self._options.sweep_interval_ms <= 0:
            return
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(
            self._sweep_loop(), name="authguard-memory-store-sweeper"
        )

    async def _sweep_loop(self) -> None:
        interval_s = self._options.sweep_interval_ms / 1000
        while not self._is_shutdown:
            await asyncio.sleep(interval_s)
            try:
                self.sweep()
            except Exception as e:
                self._logger.error("Sweep failed", error=e)


def create_memory_store(
    options: MemoryStoreOptions | None = None,
    *,
    clock: Clock | None = None,
    logger: LoggerProtocol | None = None,
    **overrides: int,
) -> BoundedMemoryStore:
    """Build a BoundedMemoryStore.

    Args:
        options: Base options (defaults when omitted).
        clock: Time source.
        logger: Structured logger.
        **overrides: Individual option overrides (e.g., high_water_mark=1000).

    Returns:
        BoundedMemoryStore: New store.
    """
    base = options or MemoryStoreOptions()
    if overrides:
        base = MemoryStoreOptions(**(base.model_dump() | overrides))
    return BoundedMemoryStore(base, clock=clock, logger=logger)
