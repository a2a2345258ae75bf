"""Bucket state store adapters."""

from authguard.infrastructure.rate_limit.memory_store import (
    BoundedMemoryStore,
    MemoryStoreOptions,
    StoreEntry,
    StoreStats,
    create_memory_store,
)

__all__ = [
    "BoundedMemoryStore",
    "MemoryStoreOptions",
    "StoreEntry",
    "StoreStats",
    "create_memory_store",
]
