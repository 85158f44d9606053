"""User records for identity concerns only.

A ``User`` is a plain immutable snapshot of one row in the credential
store. State changes go through the store, which hands back a fresh
snapshot; nothing mutates a ``User`` in place.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

# Columns that ``CredentialStore.update_user`` may change. Secrets and
# verification state have dedicated store operations.
UPDATABLE_USER_FIELDS = frozenset({"username", "display_name", "avatar_url", "bio"})


@dataclass(frozen=True)
class User:
    """Snapshot of a user row, including credential columns.

    Token columns hold SHA-256 digests, never the raw tokens.
    """

    id: UUID
    username: str
    email: str
    password_hash: str = field(repr=False)
    is_email_verified: bool
    created_at: datetime
    updated_at: datetime
    verification_token_hash: str | None = field(default=None, repr=False)
    verification_token_expires_at: datetime | None = None
    reset_token_hash: str | None = field(default=None, repr=False)
    reset_token_expires_at: datetime | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None

    def is_verification_token_expired(self, now: datetime) -> bool:
        """Check whether the pending verification token is past its expiry.

        A token without an expiry is treated as expired.
        """
        expires_at = self.verification_token_expires_at
        return expires_at is None or now >= expires_at

    def is_reset_token_expired(self, now: datetime) -> bool:
        """Check whether the pending reset token is past its expiry."""
        expires_at = self.reset_token_expires_at
        return expires_at is None or now >= expires_at

    def to_profile(self) -> "UserProfile":
        return UserProfile(
            id=self.id,
            username=self.username,
            email=self.email,
            is_email_verified=self.is_email_verified,
            display_name=self.display_name,
            avatar_url=self.avatar_url,
            bio=self.bio,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class NewUser:
    """Data required to insert a user row."""

    username: str
    email: str
    password_hash: str = field(repr=False)
    is_email_verified: bool = False
    display_name: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class UserProfile:
    """Public view of a user, free of any credential material."""

    id: UUID
    username: str
    email: str
    is_email_verified: bool
    display_name: str | None
    avatar_url: str | None
    bio: str | None
    created_at: datetime
