"""Abstract credential store interface.

The credential store is the single source of truth for users, refresh
tokens and social connections. Services never cache its rows across calls.

Every token argument is a SHA-256 digest (see
``speedcoding_auth.services.token_digest.hash_token``); raw tokens never reach
the store.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from speedcoding_identity.domain.user import NewUser, SocialConnection, User

T = TypeVar("T")


@dataclass(frozen=True)
class RefreshTokenData:
    """Immutable refresh token row."""

    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    is_revoked: bool
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Check if the token has expired."""
        return now >= self.expires_at

    def is_usable(self, now: datetime) -> bool:
        """A token authenticates a refresh iff it is not revoked and not expired."""
        return not self.is_revoked and not self.is_expired(now)


class CredentialStore(ABC):
    """Abstract store for users, refresh tokens and social connections.

    Implementations wrap their backend errors in ``CredentialStoreError``
    (``DuplicateRecordError`` for unique violations).
    """

    # -- Transactions ---------------------------------------------------------

    @abstractmethod
    async def run_in_transaction(
        self,
        fn: "Callable[[CredentialStore], Awaitable[T]]",
    ) -> T:
        """Run ``fn`` against a store bound to a single atomic transaction.

        Parameters
        ----------
        fn
            Coroutine function receiving the transaction-bound store

        Returns
        -------
        Whatever ``fn`` returns, after the transaction has committed.
        If ``fn`` raises, every write it made is rolled back and the
        exception propagates.
        """

    # -- Users ----------------------------------------------------------------

    @abstractmethod
    async def find_user_by_id(self, user_id: UUID) -> User | None:
        """Find a user by id."""

    @abstractmethod
    async def find_user_by_email(self, email: str) -> User | None:
        """Find a user by normalized email address."""

    @abstractmethod
    async def find_user_by_username(self, username: str) -> User | None:
        """Find a user by exact username."""

    @abstractmethod
    async def find_user_by_verification_token(self, token_hash: str) -> User | None:
        """Find the user holding a pending verification token digest."""

    @abstractmethod
    async def find_user_by_reset_token(self, token_hash: str) -> User | None:
        """Find the user holding a pending password reset token digest."""

    @abstractmethod
    async def find_user_by_social_connection(
        self,
        provider: str,
        provider_id: str,
    ) -> User | None:
        """Find the user linked to a (provider, provider_id) identity."""

    @abstractmethod
    async def create_user(self, new_user: NewUser) -> User:
        """Insert a new user.

        Raises
        ------
        DuplicateRecordError
            If the username or email is already taken
        """

    @abstractmethod
    async def update_user(self, user_id: UUID, **fields: Any) -> User:
        """Update profile columns of a user.

        Parameters
        ----------
        user_id
            The user's unique identifier
        **fields
            Column values; only names in ``UPDATABLE_USER_FIELDS`` are allowed

        Returns
        -------
        The updated user

        Raises
        ------
        ValueError
            If a field is not updatable
        CredentialStoreError
            If the user does not exist
        """

    @abstractmethod
    async def set_verification_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        """Store a verification token digest, replacing any previous one."""

    @abstractmethod
    async def set_reset_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        """Store a password reset token digest, replacing any previous one."""

    @abstractmethod
    async def mark_email_verified(self, user_id: UUID) -> None:
        """Set the verified flag and clear the verification token."""

    @abstractmethod
    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        """Replace the password hash and clear the reset token."""

    # -- Social connections ---------------------------------------------------

    @abstractmethod
    async def find_social_connection(
        self,
        provider: str,
        provider_id: str,
    ) -> SocialConnection | None:
        """Find a connection by external identity."""

    @abstractmethod
    async def find_user_social_connection(
        self,
        user_id: UUID,
        provider: str,
    ) -> SocialConnection | None:
        """Find the connection a user has for a provider, if any."""

    @abstractmethod
    async def create_social_connection(
        self,
        user_id: UUID,
        provider: str,
        provider_id: str,
    ) -> SocialConnection:
        """Link an external identity to an existing user."""

    @abstractmethod
    async def create_user_with_social_connection(
        self,
        new_user: NewUser,
        provider: str,
        provider_id: str,
    ) -> User:
        """Atomically create a user and its first social connection.

        If ``new_user.username`` is taken, a short random suffix is appended
        before the insert. The check and the insert run in the same
        transaction.
        """

    # -- Refresh tokens -------------------------------------------------------

    @abstractmethod
    async def store_refresh_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> RefreshTokenData:
        """Persist a new, non-revoked refresh token."""

    @abstractmethod
    async def find_refresh_token(self, token_hash: str) -> RefreshTokenData | None:
        """Find a refresh token regardless of its state."""

    @abstractmethod
    async def validate_refresh_token(
        self,
        token_hash: str,
        now: datetime,
    ) -> RefreshTokenData | None:
        """Return the token only if it exists, is not revoked and not expired."""

    @abstractmethod
    async def consume_refresh_token(self, token_hash: str, now: datetime) -> bool:
        """Revoke a token if, and only if, it is still usable.

        This is the compare-and-set step of rotation. Among concurrent
        callers presenting the same token, exactly one gets ``True``.
        """

    @abstractmethod
    async def revoke_refresh_token(self, token_hash: str) -> None:
        """Revoke a token. Unknown or already revoked tokens are ignored."""

    @abstractmethod
    async def revoke_all_user_refresh_tokens(self, user_id: UUID) -> int:
        """Revoke every active token of a user.

        Returns
        -------
        Number of tokens that were revoked by this call
        """

    @abstractmethod
    async def purge_refresh_tokens(self, now: datetime) -> int:
        """Delete expired or revoked tokens.

        Returns
        -------
        Number of tokens deleted
        """
