"""Backend settings read from the environment.

Lookup order for each value:
1. Process environment variables
2. The dotenv file named by SPEEDCODING_ENV_FILE
3. config/.env.dev, then config/.env, below the project root
4. The defaults declared on ``Settings``

Validation and coercion are handled by pydantic-settings.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE_VARIABLE = "SPEEDCODING_ENV_FILE"
DEFAULT_ENV_FILES = (".env.dev", ".env")

_ROOT_MARKERS = ("config", ".git")


def _project_root() -> Path:
    here = Path(__file__).resolve()
    for candidate in here.parents:
        if any((candidate / marker).is_dir() for marker in _ROOT_MARKERS):
            return candidate
        if candidate == Path("/app"):
            return candidate
    # src/speedcoding_config/settings.py -> repository root
    return here.parents[4] if len(here.parents) > 4 else here.parent


def get_config_dir() -> Path:
    """Directory holding the dotenv files."""
    return _project_root() / "config"


def _discover_env_file() -> Path | None:
    explicit = os.environ.get(ENV_FILE_VARIABLE)
    if explicit:
        path = Path(explicit)
        if not path.is_absolute():
            path = _project_root() / path
        if path.exists():
            return path

    for name in DEFAULT_ENV_FILES:
        path = get_config_dir() / name
        if path.exists():
            return path
    return None


class Settings(BaseSettings):
    """Configuration for the SpeedCoding backend.

    Only the two JWT secrets are required; everything else has a default
    suitable for local development.
    """

    model_config = SettingsConfigDict(
        env_file=_discover_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Signing keys, one per token kind
    jwt_access_secret_key: SecretStr
    jwt_refresh_secret_key: SecretStr

    app_name: str = "SpeedCoding"
    debug: bool = False

    # PostgreSQL connection, ignored when database_url_override is set
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: SecretStr = SecretStr("")
    postgres_db: str = "speedcoding"
    database_url_override: str | None = None

    jwt_access_token_expire_minutes: int = Field(default=15, gt=0)
    jwt_refresh_token_expire_days: int = Field(default=7, gt=0)
    verification_token_expire_hours: int = Field(default=24, gt=0)
    reset_token_expire_hours: int = Field(default=1, gt=0)

    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # Outbound mail; when disabled, links are only logged
    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr | None = None
    smtp_from_email: str = "noreply@speedcoding.app"
    smtp_from_name: str = "SpeedCoding"
    smtp_use_tls: bool = True
    smtp_starttls: bool = True

    # Base of the links mailed for verification and password reset
    frontend_base_url: str = "http://localhost:3000"

    log_level: str = "INFO"

    @field_validator("frontend_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """SQLAlchemy URL, either the override or one built for asyncpg."""
        if self.database_url_override:
            return self.database_url_override
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process.

    Raises ``pydantic.ValidationError`` if a JWT secret is missing.
    """
    return Settings()  # type: ignore[call-arg]


def clear_settings_cache() -> None:
    """Forget the cached settings so the next call reloads them."""
    get_settings.cache_clear()
