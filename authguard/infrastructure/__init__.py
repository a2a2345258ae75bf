"""Infrastructure adapters (store, logging, hashing, metrics)."""
