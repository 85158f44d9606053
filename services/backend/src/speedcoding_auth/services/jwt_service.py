"""JWT token service.

Provides JWT token creation and verification for authentication.
"""

import uuid
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from speedcoding_auth.clock import Clock, utc_now
from speedcoding_auth.exceptions import InvalidTokenError
from speedcoding_auth.schemas import AccessTokenPayload, RefreshTokenPayload

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class JWTService:
    """Service for JWT token creation and verification.

    Handles access tokens (short-lived) and refresh tokens (long-lived)
    for user authentication. The two kinds are signed with different
    secrets and tagged with a ``type`` claim, so one can never be accepted
    in place of the other.

    Expiry is checked against the injected clock rather than the library's
    wall clock.

    Examples
    --------
    >>> service = JWTService("access-secret", "refresh-secret")
    >>> token = service.create_access_token(user_id, "alice", "alice@x.com")
    >>> payload = service.verify_access_token(token)
    >>> print(payload.user_id)
    """

    DEFAULT_ACCESS_EXPIRE_MINUTES = 15
    DEFAULT_REFRESH_EXPIRE_DAYS = 7
    ALGORITHM = "HS256"

    def __init__(
        self,
        access_secret_key: str,
        refresh_secret_key: str,
        access_token_ttl: timedelta = timedelta(minutes=DEFAULT_ACCESS_EXPIRE_MINUTES),
        refresh_token_ttl: timedelta = timedelta(days=DEFAULT_REFRESH_EXPIRE_DAYS),
        clock: Clock = utc_now,
    ):
        """Initialize the JWT service.

        Parameters
        ----------
        access_secret_key
            Secret key for signing access tokens. Must be kept secure.
        refresh_secret_key
            Secret key for signing refresh tokens. Must differ from the
            access secret.
        access_token_ttl
            Lifetime of access tokens (default 15 minutes)
        refresh_token_ttl
            Lifetime of refresh tokens (default 7 days)
        clock
            Source of the current time
        """
        if not access_secret_key or not refresh_secret_key:
            msg = "JWT secret keys cannot be empty"
            raise ValueError(msg)
        if access_secret_key == refresh_secret_key:
            msg = "Access and refresh tokens must use different secret keys"
            raise ValueError(msg)

        self._access_secret = access_secret_key
        self._refresh_secret = refresh_secret_key
        self._access_ttl = access_token_ttl
        self._refresh_ttl = refresh_token_ttl
        self._clock = clock

    def create_access_token(self, user_id: UUID, username: str, email: str) -> str:
        """Create a short-lived access token.

        A random ``jti`` keeps two tokens issued in the same second distinct.

        Parameters
        ----------
        user_id
            The user's unique identifier
        username
            The user's username
        email
            The user's email address

        Returns
        -------
        The encoded JWT token string
        """
        claims = {"username": username, "email": email, "jti": str(uuid.uuid4())}
        return self._create_token(
            user_id=user_id,
            token_type=ACCESS_TOKEN_TYPE,
            ttl=self._access_ttl,
            secret=self._access_secret,
            extra_claims=claims,
        )

    def create_refresh_token(self, user_id: UUID) -> str:
        """Create a long-lived refresh token.

        Every refresh token gets a random ``jti`` so two tokens issued for
        the same user in the same second still differ.

        Parameters
        ----------
        user_id
            The user's unique identifier

        Returns
        -------
        The encoded JWT token string
        """
        return self._create_token(
            user_id=user_id,
            token_type=REFRESH_TOKEN_TYPE,
            ttl=self._refresh_ttl,
            secret=self._refresh_secret,
            extra_claims={"jti": str(uuid.uuid4())},
        )

    def verify_access_token(self, token: str) -> AccessTokenPayload:
        """Verify and decode an access token.

        Raises
        ------
        InvalidTokenError
            If token is invalid, expired, or malformed
        """
        claims = self._decode(
            token,
            secret=self._access_secret,
            token_type=ACCESS_TOKEN_TYPE,
            required=["sub", "username", "email", "type", "iat", "exp"],
        )
        try:
            payload = AccessTokenPayload(
                user_id=UUID(claims["sub"]),
                username=claims["username"],
                email=claims["email"],
                issued_at=_from_timestamp(claims["iat"]),
                expires_at=_from_timestamp(claims["exp"]),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidTokenError(f"Malformed token payload: {e}") from e

        if payload.is_expired(self._clock()):
            raise InvalidTokenError("Token has expired")
        return payload

    def verify_refresh_token(self, token: str) -> RefreshTokenPayload:
        """Verify and decode a refresh token.

        Only the signature, type and expiry are checked here. Whether the
        token is still active is the concern of the credential store.

        Raises
        ------
        InvalidTokenError
            If token is invalid, expired, or malformed
        """
        payload = self.decode_refresh_token(token)
        if payload.is_expired(self._clock()):
            raise InvalidTokenError("Token has expired")
        return payload

    def decode_refresh_token(self, token: str) -> RefreshTokenPayload:
        """Decode a refresh token without checking its expiry.

        Used when persisting a freshly issued token, whose stored expiry is
        taken from the token itself.

        Raises
        ------
        InvalidTokenError
            If the signature is bad or a required claim is missing
        """
        claims = self._decode(
            token,
            secret=self._refresh_secret,
            token_type=REFRESH_TOKEN_TYPE,
            required=["sub", "jti", "type", "iat", "exp"],
        )
        try:
            return RefreshTokenPayload(
                user_id=UUID(claims["sub"]),
                token_id=str(claims["jti"]),
                issued_at=_from_timestamp(claims["iat"]),
                expires_at=_from_timestamp(claims["exp"]),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidTokenError(f"Malformed token payload: {e}") from e

    def _decode(
        self,
        token: str,
        secret: str,
        token_type: str,
        required: list[str],
    ) -> dict:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": required},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if claims.get("type") != token_type:
            msg = f"Expected {token_type} token"
            raise InvalidTokenError(msg)
        return claims

    def _create_token(
        self,
        user_id: UUID,
        token_type: str,
        ttl: timedelta,
        secret: str,
        extra_claims: dict,
    ) -> str:
        """Create a JWT token with the given parameters.

        Parameters
        ----------
        user_id
            The user's unique identifier
        token_type
            Either "access" or "refresh"
        ttl
            Time until token expires
        secret
            Signing key for this token type
        extra_claims
            Claims specific to the token type

        Returns
        -------
        The encoded JWT token string
        """
        now = self._clock()
        expire = now + ttl

        payload = {
            "sub": str(user_id),
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            **extra_claims,
        }

        return jwt.encode(payload, secret, algorithm=self.ALGORITHM)


def _from_timestamp(value: int | float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)
