# ruff: noqa: E501 - Long import paths in __init__.py re-exports
"""Application services for identity management."""

from speedcoding_identity.application.services.credential_lifecycle_service import (
    CredentialLifecycleService,
)
from speedcoding_identity.application.services.password_credentials_service import (
    IssuedToken,
    PasswordCredentialsService,
)
from speedcoding_identity.application.services.social_identity_resolver import (
    SocialIdentityResolver,
    synthesize_username,
)
from speedcoding_identity.application.services.token_issuer import TokenIssuer

__all__ = [
    "CredentialLifecycleService",
    "IssuedToken",
    "PasswordCredentialsService",
    "SocialIdentityResolver",
    "TokenIssuer",
    "synthesize_username",
]
