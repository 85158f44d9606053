"""Abstract repository interfaces for identity management."""

from speedcoding_identity.repositories.credential_store import (
    CredentialStore,
    RefreshTokenData,
)

__all__ = [
    "CredentialStore",
    "RefreshTokenData",
]
