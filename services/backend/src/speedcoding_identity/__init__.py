"""SpeedCoding Identity - Accounts, credentials and sessions.

This module handles all identity-related concerns:
- Registration and login with email and password
- Access/refresh token issuance, rotation and revocation
- Email verification and password reset tokens
- Social (OAuth) account linking and creation

Runs, submissions and leaderboards only reference ``user_id``,
keeping identity concerns separated.
"""

from speedcoding_identity.application.ports import MailSender
from speedcoding_identity.application.services import (
    CredentialLifecycleService,
    IssuedToken,
    PasswordCredentialsService,
    SocialIdentityResolver,
    TokenIssuer,
)
from speedcoding_identity.config import AuthConfig
from speedcoding_identity.domain.user import (
    Email,
    NewUser,
    SocialConnection,
    SocialProfile,
    User,
    UserProfile,
    Username,
)
from speedcoding_identity.exceptions import (
    AlreadyVerifiedError,
    AuthError,
    ConflictError,
    CredentialStoreError,
    DuplicateRecordError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidTokenError,
    InvalidUsernameError,
    MailDeliveryError,
    NotFoundError,
    SocialAuthError,
    TokenExpiredError,
    WeakPasswordError,
)
from speedcoding_identity.repositories import CredentialStore, RefreshTokenData

__all__ = [
    # Configuration
    "AuthConfig",
    # Domain - User
    "Email",
    "NewUser",
    "SocialConnection",
    "SocialProfile",
    "User",
    "UserProfile",
    "Username",
    # Exceptions
    "AlreadyVerifiedError",
    "AuthError",
    "ConflictError",
    "CredentialStoreError",
    "DuplicateRecordError",
    "EmailNotVerifiedError",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "InvalidTokenError",
    "InvalidUsernameError",
    "MailDeliveryError",
    "NotFoundError",
    "SocialAuthError",
    "TokenExpiredError",
    "WeakPasswordError",
    # Ports
    "CredentialStore",
    "MailSender",
    "RefreshTokenData",
    # Application Services
    "CredentialLifecycleService",
    "IssuedToken",
    "PasswordCredentialsService",
    "SocialIdentityResolver",
    "TokenIssuer",
]
