"""Opaque token generation and one-way hashing.

Raw tokens only ever travel to the client; stores see the SHA-256 digest.
"""

from __future__ import annotations

import hashlib
import secrets

TOKEN_BYTES = 32


def generate_opaque_token() -> str:
    """Return a URL-safe random token carrying 256 bits of entropy."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(raw: str) -> str:
    """
    Hash a raw token for storage and lookup.

    :param raw: Token as presented by the client.
    :type raw: str
    :returns: Lowercase hex SHA-256 digest (64 chars).
    :rtype: str
    """
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
