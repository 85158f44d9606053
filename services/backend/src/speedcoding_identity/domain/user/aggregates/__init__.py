from speedcoding_identity.domain.user.aggregates.user import (
    UPDATABLE_USER_FIELDS,
    NewUser,
    User,
    UserProfile,
)

__all__ = [
    "UPDATABLE_USER_FIELDS",
    "NewUser",
    "User",
    "UserProfile",
]
