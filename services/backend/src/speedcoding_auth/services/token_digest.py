"""Random one-time tokens and their storage digests.

Tokens handed to users (verification, password reset, refresh) are never
stored in plain text. Only the SHA-256 digest is persisted, so a leaked
database cannot be replayed against the API.
"""

import hashlib
import secrets

# 32 random bytes, 256 bits of entropy
TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate a URL-safe random token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Return the hex SHA-256 digest under which a token is stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
