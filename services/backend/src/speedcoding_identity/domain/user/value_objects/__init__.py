"""Value objects for the user domain."""

from speedcoding_identity.domain.user.value_objects.email import Email
from speedcoding_identity.domain.user.value_objects.social import (
    SocialConnection,
    SocialProfile,
)
from speedcoding_identity.domain.user.value_objects.username import (
    MAX_USERNAME_LENGTH,
    Username,
)

__all__ = [
    "MAX_USERNAME_LENGTH",
    "Email",
    "SocialConnection",
    "SocialProfile",
    "Username",
]
