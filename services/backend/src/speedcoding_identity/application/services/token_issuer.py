"""Access and refresh token lifecycle."""

import logging
from uuid import UUID

from speedcoding_auth.clock import Clock, utc_now
from speedcoding_auth.schemas import AccessTokenPayload, TokenPair
from speedcoding_auth.services import JWTService, hash_token
from speedcoding_identity.domain.user import User
from speedcoding_identity.exceptions import InvalidTokenError
from speedcoding_identity.repositories import CredentialStore

logger = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN = "Invalid refresh token"


class TokenIssuer:
    """Creates, persists, validates, rotates and revokes session tokens.

    Access tokens are stateless JWTs. Refresh tokens are JWTs as well, but
    a refresh token is only usable while its digest is stored, not revoked
    and not expired. Every refresh failure surfaces as the same
    ``InvalidTokenError`` so callers learn nothing about the cause.
    """

    def __init__(
        self,
        store: CredentialStore,
        jwt_service: JWTService,
        clock: Clock = utc_now,
    ):
        self._store = store
        self._jwt = jwt_service
        self._clock = clock

    def generate_tokens(self, user_id: UUID, username: str, email: str) -> TokenPair:
        """Create a signed access/refresh pair without persisting anything."""
        return TokenPair(
            access_token=self._jwt.create_access_token(user_id, username, email),
            refresh_token=self._jwt.create_refresh_token(user_id),
        )

    async def store_refresh_token(
        self,
        refresh_token: str,
        user_id: UUID,
        store: CredentialStore | None = None,
    ) -> None:
        """Persist a refresh token as active until its encoded expiry.

        Raises
        ------
        InvalidTokenError
            If the token cannot be decoded or belongs to another user
        """
        store = store or self._store
        payload = self._jwt.decode_refresh_token(refresh_token)
        if payload.user_id != user_id:
            msg = "Refresh token subject does not match user"
            raise InvalidTokenError(msg)
        await store.store_refresh_token(
            user_id,
            hash_token(refresh_token),
            payload.expires_at,
        )

    async def issue_tokens(
        self,
        user: User,
        store: CredentialStore | None = None,
    ) -> TokenPair:
        """Generate a pair for ``user`` and persist its refresh token."""
        tokens = self.generate_tokens(user.id, user.username, user.email)
        await self.store_refresh_token(tokens.refresh_token, user.id, store=store)
        return tokens

    async def validate_refresh_token(self, refresh_token: str) -> UUID:
        """Return the owner of a usable refresh token.

        The token must verify cryptographically, be stored, not be revoked
        and not be expired.

        Raises
        ------
        InvalidTokenError
            If any of the checks fail
        """
        try:
            payload = self._jwt.verify_refresh_token(refresh_token)
        except InvalidTokenError as e:
            logger.debug("Rejected refresh token: %s", e.message)
            raise InvalidTokenError(INVALID_REFRESH_TOKEN) from e

        token_hash = hash_token(refresh_token)
        data = await self._store.validate_refresh_token(token_hash, self._clock())
        if data is None or data.user_id != payload.user_id:
            await self._log_rejection(token_hash)
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)
        return data.user_id

    async def rotate_refresh_token(self, refresh_token: str) -> TokenPair:
        """Exchange a usable refresh token for a brand-new pair.

        The presented token is revoked and the new refresh token stored in
        the same transaction. Of several concurrent calls with one token,
        exactly one succeeds.

        Raises
        ------
        InvalidTokenError
            If the token is not usable or lost the race
        """
        try:
            payload = self._jwt.verify_refresh_token(refresh_token)
        except InvalidTokenError as e:
            logger.debug("Rejected refresh token: %s", e.message)
            raise InvalidTokenError(INVALID_REFRESH_TOKEN) from e

        token_hash = hash_token(refresh_token)

        async def _rotate(tx: CredentialStore) -> TokenPair:
            if not await tx.consume_refresh_token(token_hash, self._clock()):
                raise InvalidTokenError(INVALID_REFRESH_TOKEN)
            user = await tx.find_user_by_id(payload.user_id)
            if user is None:
                raise InvalidTokenError(INVALID_REFRESH_TOKEN)
            return await self.issue_tokens(user, store=tx)

        try:
            tokens = await self._store.run_in_transaction(_rotate)
        except InvalidTokenError:
            await self._log_rejection(token_hash)
            raise

        logger.info("Rotated refresh token for user %s", payload.user_id)
        return tokens

    async def revoke_refresh_token(
        self,
        refresh_token: str,
        store: CredentialStore | None = None,
    ) -> None:
        """Revoke one refresh token. Unknown or revoked tokens are ignored."""
        store = store or self._store
        await store.revoke_refresh_token(hash_token(refresh_token))

    async def revoke_all_user_refresh_tokens(
        self,
        user_id: UUID,
        store: CredentialStore | None = None,
    ) -> int:
        store = store or self._store
        revoked = await store.revoke_all_user_refresh_tokens(user_id)
        logger.info("Revoked %d refresh tokens for user %s", revoked, user_id)
        return revoked

    async def purge_expired_refresh_tokens(self) -> int:
        """Delete expired and revoked refresh tokens."""
        purged = await self._store.purge_refresh_tokens(self._clock())
        logger.info("Purged %d expired or revoked refresh tokens", purged)
        return purged

    def verify_access_token(self, access_token: str) -> AccessTokenPayload:
        return self._jwt.verify_access_token(access_token)

    async def _log_rejection(self, token_hash: str) -> None:
        data = await self._store.find_refresh_token(token_hash)
        if data is None:
            logger.debug("Rejected refresh token: not found")
        elif data.is_revoked:
            logger.warning("Revoked refresh token presented for user %s", data.user_id)
        else:
            logger.debug("Rejected refresh token for user %s: expired", data.user_id)
