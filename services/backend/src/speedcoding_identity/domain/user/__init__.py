"""User domain manages user identity only.

This domain handles:
- User records (identity and credential columns)
- Email and username normalization
- Social identities linked to a user

Runs, submissions and leaderboards only reference ``user_id``.
"""

from speedcoding_identity.domain.user.aggregates import (
    UPDATABLE_USER_FIELDS,
    NewUser,
    User,
    UserProfile,
)
from speedcoding_identity.domain.user.value_objects import (
    MAX_USERNAME_LENGTH,
    Email,
    SocialConnection,
    SocialProfile,
    Username,
)

__all__ = [
    "MAX_USERNAME_LENGTH",
    "UPDATABLE_USER_FIELDS",
    "Email",
    "NewUser",
    "SocialConnection",
    "SocialProfile",
    "User",
    "UserProfile",
    "Username",
]
