"""Password hashing plus verification and reset token handling."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from speedcoding_auth.clock import Clock, utc_now
from speedcoding_auth.services import PasswordHashingService, generate_token, hash_token
from speedcoding_identity.domain.user import User
from speedcoding_identity.exceptions import NotFoundError, TokenExpiredError
from speedcoding_identity.repositories import CredentialStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    """A freshly issued one-time token and the user it belongs to.

    ``token`` is the raw value to mail out; only its digest was stored.
    """

    user: User
    token: str

    def __repr__(self) -> str:
        return f"IssuedToken(user_id={self.user.id}, token=***)"


class PasswordCredentialsService:
    """Hashes and verifies passwords and manages one-time account tokens.

    Methods that write take an optional ``store`` so callers can run them
    inside an outer ``CredentialStore.run_in_transaction`` block.
    """

    def __init__(
        self,
        store: CredentialStore,
        password_service: PasswordHashingService,
        verification_token_ttl: timedelta = timedelta(hours=24),
        reset_token_ttl: timedelta = timedelta(hours=1),
        clock: Clock = utc_now,
    ):
        self._store = store
        self._password_service = password_service
        self._verification_ttl = verification_token_ttl
        self._reset_ttl = reset_token_ttl
        self._clock = clock
        # Unknown-email logins only ever verify against this hash
        self._dummy_hash = password_service.hash(generate_token())

    def validate_password(self, password: str) -> None:
        """Raise ``WeakPasswordError`` unless the password meets the policy."""
        self._password_service.validate_strength(password)

    async def hash_password(self, password: str) -> str:
        return await self._password_service.hash_async(password)

    async def verify_password(self, password: str, password_hash: str) -> bool:
        return await self._password_service.verify_async(password, password_hash)

    async def verify_dummy_password(self, password: str) -> None:
        """Spend the cost of one verification without a real hash.

        Called on login for unknown accounts so their response time matches
        that of a wrong password.
        """
        await self._password_service.verify_async(password, self._dummy_hash)

    async def generate_verification_token(
        self,
        user_id: UUID,
        store: CredentialStore | None = None,
    ) -> str:
        """Issue a new email-verification token for a user.

        Any previously issued verification token is overwritten and stops
        working.

        Returns
        -------
        The raw token to embed in the verification link
        """
        store = store or self._store
        token = generate_token()
        expires_at = self._clock() + self._verification_ttl
        await store.set_verification_token(user_id, hash_token(token), expires_at)
        logger.debug("Issued verification token for user %s", user_id)
        return token

    async def verify_email(self, token: str) -> UUID:
        """Mark the account holding ``token`` as verified.

        Returns
        -------
        The id of the verified user

        Raises
        ------
        NotFoundError
            If no account holds the token (including a second use)
        TokenExpiredError
            If the token is past its expiry
        """
        token_hash = hash_token(token)

        async def _verify(tx: CredentialStore) -> UUID:
            user = await tx.find_user_by_verification_token(token_hash)
            if user is None:
                raise NotFoundError("Invalid verification token")
            if user.is_verification_token_expired(self._clock()):
                raise TokenExpiredError("Verification token has expired")
            await tx.mark_email_verified(user.id)
            return user.id

        user_id = await self._store.run_in_transaction(_verify)
        logger.info("Email verified for user %s", user_id)
        return user_id

    async def generate_password_reset_token(
        self,
        email: str,
        store: CredentialStore | None = None,
    ) -> IssuedToken:
        """Issue a password reset token for the account registered to ``email``.

        Parameters
        ----------
        email
            Normalized email address
        store
            Transaction-bound store, if called inside a transaction

        Raises
        ------
        NotFoundError
            If no account uses the address. Callers facing the public must
            not let this difference show.
        """
        store = store or self._store
        user = await store.find_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")

        token = generate_token()
        expires_at = self._clock() + self._reset_ttl
        await store.set_reset_token(user.id, hash_token(token), expires_at)
        logger.debug("Issued password reset token for user %s", user.id)
        return IssuedToken(user=user, token=token)

    async def reset_password(self, token: str, new_password: str) -> UUID:
        """Replace a password using a reset token.

        The new hash is written, the reset token is cleared and every
        refresh token of the user is revoked, all in one transaction.

        Returns
        -------
        The id of the user whose password changed

        Raises
        ------
        WeakPasswordError
            If the new password does not meet the policy
        NotFoundError
            If no account holds the token
        TokenExpiredError
            If the token is past its expiry
        """
        new_hash = await self.hash_password(new_password)
        token_hash = hash_token(token)

        async def _reset(tx: CredentialStore) -> tuple[UUID, int]:
            user = await tx.find_user_by_reset_token(token_hash)
            if user is None:
                raise NotFoundError("Invalid password reset token")
            if user.is_reset_token_expired(self._clock()):
                raise TokenExpiredError("Password reset token has expired")
            await tx.update_password(user.id, new_hash)
            revoked = await tx.revoke_all_user_refresh_tokens(user.id)
            return user.id, revoked

        user_id, revoked = await self._store.run_in_transaction(_reset)
        logger.info(
            "Password reset completed for user %s (%d sessions revoked)",
            user_id,
            revoked,
        )
        return user_id
