"""Identity and authentication exceptions.

These exceptions are raised by the speedcoding_identity package and should be
caught and mapped to transport-level responses by the caller. Every type
derives from ``AuthError`` so a single handler can catch the whole family.
"""

from speedcoding_auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    InvalidTokenError,
    WeakPasswordError,
)


class ConflictError(AuthError):
    """Raised when an email or username is already registered.

    ``field`` names the colliding attribute (``"email"`` or ``"username"``).
    """

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"{field.capitalize()} already exists")


class NotFoundError(AuthError):
    """Raised when a verification/reset token or a user cannot be found."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class TokenExpiredError(AuthError):
    """Raised when a verification or reset token exists but is past expiry."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class AlreadyVerifiedError(AuthError):
    """Raised when verification is requested for an already verified account."""

    def __init__(self, message: str = "Email is already verified"):
        super().__init__(message)


class EmailNotVerifiedError(AuthError):
    """Raised when an operation requires a verified email address."""

    def __init__(self, message: str = "Email address has not been verified"):
        super().__init__(message)


class SocialAuthError(AuthError):
    """Raised when a social login fails for any reason."""

    def __init__(self, message: str = "Social authentication failed"):
        super().__init__(message)


class InvalidEmailError(AuthError, ValueError):
    """Raised when email format is invalid."""

    def __init__(self, message: str = "Invalid email address"):
        super().__init__(message)


class InvalidUsernameError(AuthError, ValueError):
    """Raised when a username is outside the allowed length."""

    def __init__(self, message: str = "Invalid username"):
        super().__init__(message)


class CredentialStoreError(AuthError):
    """Raised when the credential store fails to complete an operation."""

    def __init__(self, message: str = "Credential store error"):
        super().__init__(message)


class DuplicateRecordError(CredentialStoreError):
    """Raised when an insert or update violates a unique constraint."""

    def __init__(self, message: str = "Record already exists"):
        super().__init__(message)


class MailDeliveryError(AuthError):
    """Raised when an outbound email could not be delivered."""

    def __init__(self, message: str = "Failed to send email"):
        super().__init__(message)


__all__ = [
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
]
