"""SQLAlchemy model for social connections."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from speedcoding_auth.clock import utc_now
from speedcoding_identity.infrastructure.persistence.sqlalchemy.base import IdentityBase


class SocialConnectionModel(IdentityBase):
    """Link between a user and an OAuth provider identity."""

    __tablename__ = "social_connections"
    __table_args__ = (
        UniqueConstraint(
            "provider",
            "provider_id",
            name="uq_social_connections_provider_identity",
        ),
        UniqueConstraint(
            "user_id",
            "provider",
            name="uq_social_connections_user_provider",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    def __repr__(self) -> str:
        return (
            f"<SocialConnectionModel(user_id={self.user_id}, "
            f"provider={self.provider})>"
        )
