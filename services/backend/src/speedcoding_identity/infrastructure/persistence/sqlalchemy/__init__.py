"""SQLAlchemy implementation for speedcoding_identity persistence.

Provides:
- IdentityBase: Declarative base for identity models
- UserModel, RefreshTokenModel, SocialConnectionModel: table models
- CredentialStoreSQLAlchemy: CredentialStore implementation
- create_engine / create_session_factory: engine and session setup
"""

from speedcoding_identity.infrastructure.persistence.sqlalchemy.base import IdentityBase
from speedcoding_identity.infrastructure.persistence.sqlalchemy.models import (
    RefreshTokenModel,
    SocialConnectionModel,
    UserModel,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy.repositories import (
    CredentialStoreSQLAlchemy,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy.session import (
    create_engine,
    create_session_factory,
)

__all__ = [
    "CredentialStoreSQLAlchemy",
    "IdentityBase",
    "RefreshTokenModel",
    "SocialConnectionModel",
    "UserModel",
    "create_engine",
    "create_session_factory",
]
