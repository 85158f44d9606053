"""SQLAlchemy model for refresh tokens."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from speedcoding_auth.clock import utc_now
from speedcoding_identity.infrastructure.persistence.sqlalchemy.base import IdentityBase


class RefreshTokenModel(IdentityBase):
    """SQLAlchemy model for refresh tokens.

    Rows are only ever flipped to revoked on the hot path. Expired and
    revoked rows are deleted by the purge maintenance command.
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    token_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    is_revoked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    def __repr__(self) -> str:
        return (
            f"<RefreshTokenModel(id={self.id}, user_id={self.user_id}, "
            f"is_revoked={self.is_revoked})>"
        )
