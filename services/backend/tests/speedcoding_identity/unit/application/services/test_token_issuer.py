"""Unit tests for TokenIssuer."""

import logging
from datetime import timedelta
from uuid import uuid4

import pytest

from speedcoding_auth.services import JWTService, hash_token
from speedcoding_identity import InvalidTokenError, RefreshTokenData, TokenIssuer


@pytest.fixture
def jwt_service(clock):
    return JWTService("access-secret", "refresh-secret", clock=clock)


@pytest.fixture
def issuer(mock_store, jwt_service, clock):
    return TokenIssuer(mock_store, jwt_service, clock=clock)


def _token_row(user_id, clock, *, revoked=False):
    return RefreshTokenData(
        id=uuid4(),
        user_id=user_id,
        token_hash="digest",
        expires_at=clock() + timedelta(days=7),
        is_revoked=revoked,
        created_at=clock(),
    )


class TestIssueTokens:
    """Tests for generating and persisting token pairs."""

    def test_generate_tokens_does_not_touch_store(self, issuer, mock_store, test_user):
        """Generation alone persists nothing."""
        tokens = issuer.generate_tokens(test_user.id, test_user.username, test_user.email)

        assert tokens.access_token
        assert tokens.refresh_token
        mock_store.store_refresh_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_tokens_stores_refresh_digest(
        self, issuer, mock_store, jwt_service, test_user, clock
    ):
        """The refresh token digest is stored with its encoded expiry."""
        tokens = await issuer.issue_tokens(test_user)

        mock_store.store_refresh_token.assert_awaited_once_with(
            test_user.id,
            hash_token(tokens.refresh_token),
            clock() + timedelta(days=7),
        )
        payload = issuer.verify_access_token(tokens.access_token)
        assert payload.user_id == test_user.id
        assert payload.email == test_user.email

    @pytest.mark.asyncio
    async def test_store_rejects_foreign_token(self, issuer, mock_store, jwt_service):
        """A refresh token can only be stored for its own subject."""
        token = jwt_service.create_refresh_token(uuid4())

        with pytest.raises(InvalidTokenError):
            await issuer.store_refresh_token(token, uuid4())

        mock_store.store_refresh_token.assert_not_called()


class TestValidateRefreshToken:
    """Tests for validate_refresh_token."""

    @pytest.mark.asyncio
    async def test_valid_token(self, issuer, mock_store, jwt_service, test_user, clock):
        """A stored, active token resolves to its owner."""
        token = jwt_service.create_refresh_token(test_user.id)
        mock_store.validate_refresh_token.return_value = _token_row(test_user.id, clock)

        assert await issuer.validate_refresh_token(token) == test_user.id
        mock_store.validate_refresh_token.assert_awaited_once_with(
            hash_token(token), clock()
        )

    @pytest.mark.asyncio
    async def test_garbage_token(self, issuer, mock_store):
        """Undecodable tokens fail with the generic message."""
        with pytest.raises(InvalidTokenError, match="Invalid refresh token"):
            await issuer.validate_refresh_token("not-a-token")

        mock_store.validate_refresh_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_token(self, issuer, mock_store, jwt_service, test_user):
        """A well-signed but unstored token is rejected."""
        token = jwt_service.create_refresh_token(test_user.id)
        mock_store.validate_refresh_token.return_value = None
        mock_store.find_refresh_token.return_value = None

        with pytest.raises(InvalidTokenError, match="Invalid refresh token"):
            await issuer.validate_refresh_token(token)


class TestRotateRefreshToken:
    """Tests for rotate_refresh_token."""

    @pytest.mark.asyncio
    async def test_rotation_issues_new_pair(
        self, issuer, mock_store, jwt_service, test_user
    ):
        """The old token is consumed and a new one stored in one transaction."""
        token = jwt_service.create_refresh_token(test_user.id)
        mock_store.consume_refresh_token.return_value = True
        mock_store.find_user_by_id.return_value = test_user

        tokens = await issuer.rotate_refresh_token(token)

        assert tokens.refresh_token != token
        mock_store.run_in_transaction.assert_awaited_once()
        mock_store.consume_refresh_token.assert_awaited_once()
        assert mock_store.consume_refresh_token.await_args.args[0] == hash_token(token)
        mock_store.store_refresh_token.assert_awaited_once()
        assert mock_store.store_refresh_token.await_args.args[1] == hash_token(
            tokens.refresh_token
        )

    @pytest.mark.asyncio
    async def test_lost_race_is_rejected(self, issuer, mock_store, jwt_service, test_user):
        """If the token was already consumed nothing new is issued."""
        token = jwt_service.create_refresh_token(test_user.id)
        mock_store.consume_refresh_token.return_value = False
        mock_store.find_refresh_token.return_value = None

        with pytest.raises(InvalidTokenError, match="Invalid refresh token"):
            await issuer.rotate_refresh_token(token)

        mock_store.store_refresh_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_replay_of_revoked_token_is_logged(
        self, issuer, mock_store, jwt_service, test_user, clock, caplog
    ):
        """Presenting a revoked token leaves a warning behind."""
        token = jwt_service.create_refresh_token(test_user.id)
        mock_store.consume_refresh_token.return_value = False
        mock_store.find_refresh_token.return_value = _token_row(
            test_user.id, clock, revoked=True
        )

        with caplog.at_level(logging.WARNING), pytest.raises(InvalidTokenError):
            await issuer.rotate_refresh_token(token)

        assert "Revoked refresh token presented" in caplog.text

    @pytest.mark.asyncio
    async def test_deleted_user(self, issuer, mock_store, jwt_service):
        """Tokens of deleted users cannot be rotated."""
        token = jwt_service.create_refresh_token(uuid4())
        mock_store.consume_refresh_token.return_value = True
        mock_store.find_user_by_id.return_value = None
        mock_store.find_refresh_token.return_value = None

        with pytest.raises(InvalidTokenError):
            await issuer.rotate_refresh_token(token)

    @pytest.mark.asyncio
    async def test_expired_token_never_reaches_store(
        self, issuer, mock_store, jwt_service, test_user, clock
    ):
        """Tokens past their encoded expiry are rejected up front."""
        token = jwt_service.create_refresh_token(test_user.id)
        clock.advance(days=8)

        with pytest.raises(InvalidTokenError, match="Invalid refresh token"):
            await issuer.rotate_refresh_token(token)

        mock_store.run_in_transaction.assert_not_called()


class TestRevocation:
    """Tests for revoking and purging refresh tokens."""

    @pytest.mark.asyncio
    async def test_revoke_single(self, issuer, mock_store):
        """Revocation passes the digest to the store."""
        await issuer.revoke_refresh_token("some-token")

        mock_store.revoke_refresh_token.assert_awaited_once_with(hash_token("some-token"))

    @pytest.mark.asyncio
    async def test_revoke_all(self, issuer, mock_store, test_user):
        """Mass revocation reports the number of revoked tokens."""
        mock_store.revoke_all_user_refresh_tokens.return_value = 4

        assert await issuer.revoke_all_user_refresh_tokens(test_user.id) == 4

    @pytest.mark.asyncio
    async def test_purge(self, issuer, mock_store, clock):
        """Purging uses the injected clock."""
        mock_store.purge_refresh_tokens.return_value = 2

        assert await issuer.purge_expired_refresh_tokens() == 2
        mock_store.purge_refresh_tokens.assert_awaited_once_with(clock())
