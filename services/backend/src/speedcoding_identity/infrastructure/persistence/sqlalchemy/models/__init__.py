# ruff: noqa: E501 - Long import paths in __init__.py re-exports
"""SQLAlchemy models for identity management."""

from speedcoding_identity.infrastructure.persistence.sqlalchemy.models.refresh_token_model import (
    RefreshTokenModel,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy.models.social_connection_model import (
    SocialConnectionModel,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy.models.user_model import (
    UserModel,
)

__all__ = [
    "RefreshTokenModel",
    "SocialConnectionModel",
    "UserModel",
]
