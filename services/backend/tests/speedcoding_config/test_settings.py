"""Tests for Settings and get_settings."""

import pytest
from pydantic import ValidationError

from speedcoding_config import Settings, clear_settings_cache, get_settings


@pytest.fixture
def jwt_env(monkeypatch):
    monkeypatch.setenv("JWT_ACCESS_SECRET_KEY", "env-access")
    monkeypatch.setenv("JWT_REFRESH_SECRET_KEY", "env-refresh")


class TestSettings:
    """Tests for loading and validating settings."""

    def test_loads_from_environment(self, jwt_env, monkeypatch):
        """Values come from environment variables."""
        monkeypatch.setenv("BCRYPT_ROUNDS", "12")
        monkeypatch.setenv("FRONTEND_BASE_URL", "https://speedcoding.test/")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.jwt_access_secret_key.get_secret_value() == "env-access"
        assert settings.jwt_refresh_secret_key.get_secret_value() == "env-refresh"
        assert settings.bcrypt_rounds == 12
        assert settings.frontend_base_url == "https://speedcoding.test"
        assert settings.log_level == "DEBUG"

    def test_secrets_are_required(self, monkeypatch):
        """Without JWT secrets the settings fail to load."""
        monkeypatch.delenv("JWT_ACCESS_SECRET_KEY", raising=False)
        monkeypatch.delenv("JWT_REFRESH_SECRET_KEY", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_secrets_hidden_from_repr(self, jwt_env):
        """SecretStr keeps keys out of repr."""
        assert "env-access" not in repr(Settings(_env_file=None))

    def test_database_url_from_components(self, jwt_env, monkeypatch):
        """The default URL targets PostgreSQL via asyncpg."""
        monkeypatch.setenv("POSTGRES_HOST", "db")
        monkeypatch.setenv("POSTGRES_PASSWORD", "pw")
        monkeypatch.delenv("DATABASE_URL_OVERRIDE", raising=False)

        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql+asyncpg://postgres:pw@db:5432/speedcoding"

    def test_database_url_override(self, jwt_env, monkeypatch):
        """An explicit URL wins over the components."""
        monkeypatch.setenv("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///./dev.db")

        assert Settings(_env_file=None).database_url == "sqlite+aiosqlite:///./dev.db"

    @pytest.mark.parametrize("rounds", ["3", "32"])
    def test_bcrypt_rounds_bounds(self, jwt_env, monkeypatch, rounds):
        """bcrypt cost must stay within 4 to 31."""
        monkeypatch.setenv("BCRYPT_ROUNDS", rounds)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_token_lifetimes_must_be_positive(self, jwt_env, monkeypatch):
        """Zero lifetimes are rejected."""
        monkeypatch.setenv("RESET_TOKEN_EXPIRE_HOURS", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestGetSettings:
    """Tests for the cached accessor."""

    def test_cached(self, jwt_env):
        """get_settings returns the same instance until the cache is cleared."""
        first = get_settings()

        assert get_settings() is first
        clear_settings_cache()
        assert get_settings() is not first
