"""Authentication services.

Provides password hashing, JWT token management and token digests.
"""

from speedcoding_auth.services.jwt_service import JWTService
from speedcoding_auth.services.password_service import PasswordHashingService
from speedcoding_auth.services.token_digest import generate_token, hash_token

__all__ = [
    "PasswordHashingService",
    "JWTService",
    "generate_token",
    "hash_token",
]
