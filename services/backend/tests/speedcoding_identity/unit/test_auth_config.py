"""Unit tests for AuthConfig."""

from datetime import timedelta

import pytest
from pydantic import SecretStr

from speedcoding_config.settings import Settings
from speedcoding_identity import AuthConfig


class TestAuthConfig:
    """Tests for AuthConfig validation and construction."""

    def test_defaults(self):
        """Default lifetimes match the documented values."""
        config = AuthConfig("access", "refresh")

        assert config.access_token_ttl == timedelta(minutes=15)
        assert config.refresh_token_ttl == timedelta(days=7)
        assert config.verification_token_ttl == timedelta(hours=24)
        assert config.reset_token_ttl == timedelta(hours=1)
        assert config.bcrypt_rounds == 10

    def test_secrets_hidden_from_repr(self):
        """Secrets never show up in repr."""
        config = AuthConfig("access-secret", "refresh-secret")

        assert "access-secret" not in repr(config)
        assert "refresh-secret" not in repr(config)

    def test_identical_secrets_rejected(self):
        """Access and refresh keys must differ."""
        with pytest.raises(ValueError, match="different secret keys"):
            AuthConfig("same", "same")

    def test_empty_secret_rejected(self):
        """Secrets cannot be empty."""
        with pytest.raises(ValueError, match="cannot be empty"):
            AuthConfig("", "refresh")

    def test_non_positive_ttl_rejected(self):
        """Lifetimes must be positive."""
        with pytest.raises(ValueError, match="reset_token_ttl"):
            AuthConfig("access", "refresh", reset_token_ttl=timedelta(0))

    def test_trailing_slash_stripped(self):
        """Links are built from a base URL without trailing slash."""
        config = AuthConfig("a", "b", frontend_base_url="https://speedcoding.test/")

        assert config.frontend_base_url == "https://speedcoding.test"

    def test_from_settings(self):
        """Settings values are converted into lifetimes."""
        settings = Settings(
            _env_file=None,
            jwt_access_secret_key=SecretStr("access"),
            jwt_refresh_secret_key=SecretStr("refresh"),
            jwt_access_token_expire_minutes=5,
            jwt_refresh_token_expire_days=2,
            verification_token_expire_hours=12,
            reset_token_expire_hours=3,
            bcrypt_rounds=4,
            frontend_base_url="https://speedcoding.test",
        )

        config = AuthConfig.from_settings(settings)

        assert config.access_secret_key == "access"
        assert config.refresh_secret_key == "refresh"
        assert config.access_token_ttl == timedelta(minutes=5)
        assert config.refresh_token_ttl == timedelta(days=2)
        assert config.verification_token_ttl == timedelta(hours=12)
        assert config.reset_token_ttl == timedelta(hours=3)
        assert config.bcrypt_rounds == 4
        assert config.frontend_base_url == "https://speedcoding.test"
