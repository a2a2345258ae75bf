"""Identifier hashing."""

from authguard.infrastructure.security.identifier_hasher import (
    hash_email,
    hash_identifier,
    hash_phone,
    hashes_match,
)

__all__ = ["hash_email", "hash_identifier", "hash_phone", "hashes_match"]
