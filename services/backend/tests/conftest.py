"""Root pytest configuration.

Test Structure:
    tests/
    ├── speedcoding_auth/unit/     # Password hashing, JWT, token digests
    ├── speedcoding_identity/      # Identity domain tests (accounts, sessions)
    │   ├── unit/                  # Fast, isolated tests with mocked stores
    │   └── integration/           # Real SQLAlchemy store on SQLite
    └── speedcoding_config/        # Settings and logging

Integration tests run against a file-backed SQLite database per test and
need no external services, so they are not skipped by default.
"""

from datetime import datetime, timedelta, timezone

import pytest

from speedcoding_config import clear_settings_cache

DEFAULT_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable time source for expiry tests."""

    def __init__(self, now: datetime = DEFAULT_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Tests that verify database/persistence behavior",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take more than 1 second",
    )


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at DEFAULT_NOW until advanced."""
    return FakeClock()


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Make every test load settings from its own environment."""
    clear_settings_cache()
    yield
    clear_settings_cache()
