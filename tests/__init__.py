"""Test suite for authguard.

- unit/: Unit tests - algorithms, store, engine and adapters in isolation
- api/: API tests - the FastAPI dependency through a real application
"""
