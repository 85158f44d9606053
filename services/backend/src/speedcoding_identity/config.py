"""Explicit configuration for the credential lifecycle services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from speedcoding_config.settings import Settings


@dataclass(frozen=True)
class AuthConfig:
    """Secrets, token lifetimes and hashing cost for the identity services.

    Built once at startup and passed into constructors, so no service reads
    the environment on its own.
    """

    access_secret_key: str = field(repr=False)
    refresh_secret_key: str = field(repr=False)
    access_token_ttl: timedelta = timedelta(minutes=15)
    refresh_token_ttl: timedelta = timedelta(days=7)
    verification_token_ttl: timedelta = timedelta(hours=24)
    reset_token_ttl: timedelta = timedelta(hours=1)
    bcrypt_rounds: int = 10
    frontend_base_url: str = "http://localhost:3000"

    def __post_init__(self) -> None:
        if not self.access_secret_key or not self.refresh_secret_key:
            msg = "JWT secret keys cannot be empty"
            raise ValueError(msg)
        if self.access_secret_key == self.refresh_secret_key:
            msg = "Access and refresh tokens must use different secret keys"
            raise ValueError(msg)
        for name in (
            "access_token_ttl",
            "refresh_token_ttl",
            "verification_token_ttl",
            "reset_token_ttl",
        ):
            if getattr(self, name) <= timedelta(0):
                msg = f"{name} must be positive"
                raise ValueError(msg)
        object.__setattr__(self, "frontend_base_url", self.frontend_base_url.rstrip("/"))

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthConfig:
        return cls(
            access_secret_key=settings.jwt_access_secret_key.get_secret_value(),
            refresh_secret_key=settings.jwt_refresh_secret_key.get_secret_value(),
            access_token_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_token_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
            verification_token_ttl=timedelta(
                hours=settings.verification_token_expire_hours
            ),
            reset_token_ttl=timedelta(hours=settings.reset_token_expire_hours),
            bcrypt_rounds=settings.bcrypt_rounds,
            frontend_base_url=settings.frontend_base_url,
        )
