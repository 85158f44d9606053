"""SpeedCoding Auth - Generic authentication infrastructure.

This package provides authentication building blocks that know nothing
about the SpeedCoding user model. It handles:
- Password hashing (bcrypt)
- JWT access/refresh token creation and verification
- Random one-time tokens and their storage digests

Architecture:
    speedcoding_auth/
    ├── services/           # Pure logic (password hashing, JWT, digests)
    ├── clock.py            # Injectable time source
    ├── schemas.py          # Data classes
    └── exceptions.py       # Auth exceptions

Usage:
    from speedcoding_auth import PasswordHashingService, JWTService
"""

from speedcoding_auth.clock import Clock, ensure_tz_aware, utc_now
from speedcoding_auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    InvalidTokenError,
    WeakPasswordError,
)
from speedcoding_auth.schemas import (
    AccessTokenPayload,
    RefreshTokenPayload,
    TokenPair,
)
from speedcoding_auth.services import (
    JWTService,
    PasswordHashingService,
    generate_token,
    hash_token,
)

__all__ = [
    # Services
    "PasswordHashingService",
    "JWTService",
    "generate_token",
    "hash_token",
    # Time
    "Clock",
    "utc_now",
    "ensure_tz_aware",
    # Schemas
    "AccessTokenPayload",
    "RefreshTokenPayload",
    "TokenPair",
    # Exceptions
    "AuthError",
    "InvalidTokenError",
    "WeakPasswordError",
    "InvalidCredentialsError",
]
