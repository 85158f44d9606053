"""Token schemas and data structures.

These are simple data classes used for transferring token data
between components.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class AccessTokenPayload:
    """Decoded access token claims.

    Attributes
    ----------
    user_id
        The unique identifier of the user (``sub`` claim)
    username
        The user's username at issuance time
    email
        The user's email address at issuance time
    issued_at
        Token issuance timestamp (``iat`` claim)
    expires_at
        Token expiration timestamp (``exp`` claim)
    """

    user_id: UUID
    username: str
    email: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Check if the token has expired."""
        return now >= self.expires_at


@dataclass(frozen=True)
class RefreshTokenPayload:
    """Decoded refresh token claims.

    ``token_id`` (the ``jti`` claim) makes every refresh token unique even
    when two are issued for the same user within the same second.
    """

    user_id: UUID
    token_id: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Check if the token has expired."""
        return now >= self.expires_at


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh token pair handed back to the client."""

    access_token: str
    refresh_token: str

    def __repr__(self) -> str:
        return "TokenPair(access_token=***, refresh_token=***)"
