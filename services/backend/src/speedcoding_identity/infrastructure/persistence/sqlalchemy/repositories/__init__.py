# ruff: noqa: E501 - Long import paths in __init__.py re-exports
"""SQLAlchemy repository implementations for identity management."""

from speedcoding_identity.infrastructure.persistence.sqlalchemy.repositories.credential_store import (
    CredentialStoreSQLAlchemy,
)

__all__ = [
    "CredentialStoreSQLAlchemy",
]
