"""SQLAlchemy implementation of CredentialStore."""

import logging
import secrets
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from speedcoding_auth.clock import ensure_tz_aware, utc_now
from speedcoding_identity.domain.user import (
    MAX_USERNAME_LENGTH,
    UPDATABLE_USER_FIELDS,
    NewUser,
    SocialConnection,
    User,
)
from speedcoding_identity.exceptions import (
    CredentialStoreError,
    DuplicateRecordError,
    NotFoundError,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy.errors import (
    is_unique_violation,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy.models import (
    RefreshTokenModel,
    SocialConnectionModel,
    UserModel,
)
from speedcoding_identity.repositories import CredentialStore, RefreshTokenData

logger = logging.getLogger(__name__)

T = TypeVar("T")

USERNAME_SUFFIX_ATTEMPTS = 5
# "-" plus 6 hex characters
_USERNAME_SUFFIX_LENGTH = 7


@asynccontextmanager
async def _translate_errors(action: str) -> AsyncIterator[None]:
    try:
        yield
    except IntegrityError as e:
        if is_unique_violation(e):
            raise DuplicateRecordError(f"Error {action}: record already exists") from e
        raise CredentialStoreError(f"Error {action}: {e.orig}") from e
    except SQLAlchemyError as e:
        raise CredentialStoreError(f"Error {action}: {e}") from e


class CredentialStoreSQLAlchemy(CredentialStore):
    """SQLAlchemy implementation of the CredentialStore interface.

    An unbound store (``session=None``) runs each call in its own short
    transaction. ``run_in_transaction`` hands the callback a store bound to
    one session, so all of the callback's calls commit or roll back
    together.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        session: AsyncSession | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._session = session

    @asynccontextmanager
    async def _session_scope(self, action: str) -> AsyncIterator[AsyncSession]:
        async with _translate_errors(action):
            if self._session is not None:
                yield self._session
            else:
                async with self._session_factory() as session, session.begin():
                    yield session

    async def run_in_transaction(
        self,
        fn: Callable[[CredentialStore], Awaitable[T]],
    ) -> T:
        if self._session is not None:
            # Already inside a transaction
            return await fn(self)

        async with _translate_errors("running transaction"):
            async with self._session_factory() as session, session.begin():
                return await fn(CredentialStoreSQLAlchemy(self._session_factory, session))

    # -- Users ----------------------------------------------------------------

    async def find_user_by_id(self, user_id: UUID) -> User | None:
        return await self._find_user(
            UserModel.id == user_id,
            action="finding user by id",
        )

    async def find_user_by_email(self, email: str) -> User | None:
        return await self._find_user(
            UserModel.email == email,
            action="finding user by email",
        )

    async def find_user_by_username(self, username: str) -> User | None:
        return await self._find_user(
            UserModel.username == username,
            action="finding user by username",
        )

    async def find_user_by_verification_token(self, token_hash: str) -> User | None:
        return await self._find_user(
            UserModel.verification_token_hash == token_hash,
            action="finding user by verification token",
        )

    async def find_user_by_reset_token(self, token_hash: str) -> User | None:
        return await self._find_user(
            UserModel.reset_token_hash == token_hash,
            action="finding user by reset token",
        )

    async def find_user_by_social_connection(
        self,
        provider: str,
        provider_id: str,
    ) -> User | None:
        stmt = (
            select(UserModel)
            .join(SocialConnectionModel, SocialConnectionModel.user_id == UserModel.id)
            .where(
                SocialConnectionModel.provider == provider,
                SocialConnectionModel.provider_id == provider_id,
            )
            .execution_options(populate_existing=True)
        )
        async with self._session_scope("finding user by social connection") as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._map_user(model) if model else None

    async def create_user(self, new_user: NewUser) -> User:
        async with self._session_scope("creating user") as session:
            model = self._new_user_model(new_user)
            session.add(model)
            await session.flush()
            logger.info("Created user: %s (username: %s)", model.id, model.username)
            return self._map_user(model)

    async def update_user(self, user_id: UUID, **fields: Any) -> User:
        unknown = set(fields) - UPDATABLE_USER_FIELDS
        if unknown:
            msg = f"Fields cannot be updated: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        async with self._session_scope("updating user") as session:
            model = await session.get(UserModel, user_id, populate_existing=True)
            if model is None:
                msg = f"User not found: {user_id}"
                raise NotFoundError(msg)
            for name, value in fields.items():
                setattr(model, name, value)
            model.updated_at = utc_now()
            await session.flush()
            logger.debug("Updated user %s: %s", user_id, ", ".join(sorted(fields)))
            return self._map_user(model)

    async def set_verification_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        await self._update_user_columns(
            user_id,
            "setting verification token",
            verification_token_hash=token_hash,
            verification_token_expires_at=ensure_tz_aware(expires_at),
        )

    async def set_reset_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        await self._update_user_columns(
            user_id,
            "setting reset token",
            reset_token_hash=token_hash,
            reset_token_expires_at=ensure_tz_aware(expires_at),
        )

    async def mark_email_verified(self, user_id: UUID) -> None:
        await self._update_user_columns(
            user_id,
            "marking email as verified",
            is_email_verified=True,
            verification_token_hash=None,
            verification_token_expires_at=None,
        )

    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        await self._update_user_columns(
            user_id,
            "updating password",
            password_hash=password_hash,
            reset_token_hash=None,
            reset_token_expires_at=None,
        )

    # -- Social connections ---------------------------------------------------

    async def find_social_connection(
        self,
        provider: str,
        provider_id: str,
    ) -> SocialConnection | None:
        stmt = select(SocialConnectionModel).where(
            SocialConnectionModel.provider == provider,
            SocialConnectionModel.provider_id == provider_id,
        )
        async with self._session_scope("finding social connection") as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._map_connection(model) if model else None

    async def find_user_social_connection(
        self,
        user_id: UUID,
        provider: str,
    ) -> SocialConnection | None:
        stmt = select(SocialConnectionModel).where(
            SocialConnectionModel.user_id == user_id,
            SocialConnectionModel.provider == provider,
        )
        async with self._session_scope("finding social connection") as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._map_connection(model) if model else None

    async def create_social_connection(
        self,
        user_id: UUID,
        provider: str,
        provider_id: str,
    ) -> SocialConnection:
        async with self._session_scope("creating social connection") as session:
            model = self._new_connection_model(user_id, provider, provider_id)
            session.add(model)
            await session.flush()
            logger.info("Linked %s identity to user %s", provider, user_id)
            return self._map_connection(model)

    async def create_user_with_social_connection(
        self,
        new_user: NewUser,
        provider: str,
        provider_id: str,
    ) -> User:
        action = "creating user with social connection"
        async with self._session_scope(action) as session:
            username = await self._available_username(session, new_user.username)
            user_model = self._new_user_model(replace(new_user, username=username))
            session.add(user_model)
            await session.flush()

            session.add(self._new_connection_model(user_model.id, provider, provider_id))
            await session.flush()

            logger.info(
                "Created user %s (username: %s) from %s identity",
                user_model.id,
                user_model.username,
                provider,
            )
            return self._map_user(user_model)

    # -- Refresh tokens -------------------------------------------------------

    async def store_refresh_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> RefreshTokenData:
        async with self._session_scope("storing refresh token") as session:
            model = RefreshTokenModel(
                id=uuid4(),
                token_hash=token_hash,
                user_id=user_id,
                expires_at=ensure_tz_aware(expires_at),
                is_revoked=False,
                created_at=utc_now(),
            )
            session.add(model)
            await session.flush()
            return self._map_refresh_token(model)

    async def find_refresh_token(self, token_hash: str) -> RefreshTokenData | None:
        stmt = select(RefreshTokenModel).where(RefreshTokenModel.token_hash == token_hash)
        async with self._session_scope("finding refresh token") as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._map_refresh_token(model) if model else None

    async def validate_refresh_token(
        self,
        token_hash: str,
        now: datetime,
    ) -> RefreshTokenData | None:
        stmt = select(RefreshTokenModel).where(
            RefreshTokenModel.token_hash == token_hash,
            RefreshTokenModel.is_revoked.is_(False),
            RefreshTokenModel.expires_at > ensure_tz_aware(now),
        )
        async with self._session_scope("validating refresh token") as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._map_refresh_token(model) if model else None

    async def consume_refresh_token(self, token_hash: str, now: datetime) -> bool:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.token_hash == token_hash,
                RefreshTokenModel.is_revoked.is_(False),
                RefreshTokenModel.expires_at > ensure_tz_aware(now),
            )
            .values(is_revoked=True)
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope("consuming refresh token") as session:
            result = await session.execute(stmt)
            return result.rowcount == 1  # type: ignore[attr-defined]

    async def revoke_refresh_token(self, token_hash: str) -> None:
        stmt = (
            update(RefreshTokenModel)
            .where(RefreshTokenModel.token_hash == token_hash)
            .values(is_revoked=True)
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope("revoking refresh token") as session:
            await session.execute(stmt)

    async def revoke_all_user_refresh_tokens(self, user_id: UUID) -> int:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.user_id == user_id,
                RefreshTokenModel.is_revoked.is_(False),
            )
            .values(is_revoked=True)
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope("revoking user refresh tokens") as session:
            result = await session.execute(stmt)
            count = result.rowcount  # type: ignore[attr-defined]
            logger.debug("Revoked %d refresh tokens for user %s", count, user_id)
            return count

    async def purge_refresh_tokens(self, now: datetime) -> int:
        stmt = (
            delete(RefreshTokenModel)
            .where(
                or_(
                    RefreshTokenModel.is_revoked.is_(True),
                    RefreshTokenModel.expires_at <= ensure_tz_aware(now),
                )
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope("purging refresh tokens") as session:
            result = await session.execute(stmt)
            return result.rowcount  # type: ignore[attr-defined]

    # -- Helpers --------------------------------------------------------------

    async def _find_user(self, criterion: Any, action: str) -> User | None:
        stmt = (
            select(UserModel)
            .where(criterion)
            .execution_options(populate_existing=True)
        )
        async with self._session_scope(action) as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return self._map_user(model) if model else None

    async def _update_user_columns(
        self,
        user_id: UUID,
        action: str,
        **values: Any,
    ) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(**values, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope(action) as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:  # type: ignore[attr-defined]
                msg = f"User not found: {user_id}"
                raise NotFoundError(msg)

    async def _available_username(self, session: AsyncSession, base: str) -> str:
        base = base[:MAX_USERNAME_LENGTH]
        candidate = base
        for _ in range(USERNAME_SUFFIX_ATTEMPTS):
            stmt = select(UserModel.id).where(UserModel.username == candidate)
            taken = (await session.execute(stmt)).first() is not None
            if not taken:
                return candidate
            stem = base[: MAX_USERNAME_LENGTH - _USERNAME_SUFFIX_LENGTH]
            candidate = f"{stem}-{secrets.token_hex(3)}"

        msg = f"Could not find a free username derived from {base!r}"
        raise DuplicateRecordError(msg)

    @staticmethod
    def _new_user_model(new_user: NewUser) -> UserModel:
        now = utc_now()
        return UserModel(
            id=uuid4(),
            username=new_user.username,
            email=new_user.email,
            password_hash=new_user.password_hash,
            is_email_verified=new_user.is_email_verified,
            display_name=new_user.display_name,
            avatar_url=new_user.avatar_url,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _new_connection_model(
        user_id: UUID,
        provider: str,
        provider_id: str,
    ) -> SocialConnectionModel:
        return SocialConnectionModel(
            id=uuid4(),
            user_id=user_id,
            provider=provider,
            provider_id=provider_id,
            created_at=utc_now(),
        )

    @staticmethod
    def _map_user(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            password_hash=model.password_hash,
            is_email_verified=model.is_email_verified,
            created_at=ensure_tz_aware(model.created_at),
            updated_at=ensure_tz_aware(model.updated_at),
            verification_token_hash=model.verification_token_hash,
            verification_token_expires_at=_optional_tz(
                model.verification_token_expires_at
            ),
            reset_token_hash=model.reset_token_hash,
            reset_token_expires_at=_optional_tz(model.reset_token_expires_at),
            display_name=model.display_name,
            avatar_url=model.avatar_url,
            bio=model.bio,
        )

    @staticmethod
    def _map_connection(model: SocialConnectionModel) -> SocialConnection:
        return SocialConnection(
            id=model.id,
            user_id=model.user_id,
            provider=model.provider,
            provider_id=model.provider_id,
            created_at=ensure_tz_aware(model.created_at),
        )

    @staticmethod
    def _map_refresh_token(model: RefreshTokenModel) -> RefreshTokenData:
        return RefreshTokenData(
            id=model.id,
            user_id=model.user_id,
            token_hash=model.token_hash,
            expires_at=ensure_tz_aware(model.expires_at),
            is_revoked=model.is_revoked,
            created_at=ensure_tz_aware(model.created_at),
        )


def _optional_tz(value: datetime | None) -> datetime | None:
    return ensure_tz_aware(value) if value is not None else None
