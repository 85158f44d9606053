"""
Pytest configuration for speedcoding_identity domain tests.

This conftest provides fixtures shared by the unit and integration tests
of the identity domain (users, credentials, sessions).
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from speedcoding_identity.domain.user import User
from speedcoding_identity.repositories import CredentialStore

CREATED_AT = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _make_user(**overrides) -> User:
    values = {
        "id": uuid4(),
        "username": "alice",
        "email": "alice@example.com",
        "password_hash": "$2b$04$placeholder",
        "is_email_verified": False,
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    values.update(overrides)
    return User(**values)


@pytest.fixture
def make_user():
    """Factory for ``User`` snapshots with sensible defaults."""
    return _make_user


@pytest.fixture
def test_user() -> User:
    """Create a standard, unverified test user."""
    return _make_user()


@pytest.fixture
def mock_store() -> AsyncMock:
    """CredentialStore mock whose transactions run against the mock itself."""
    store = AsyncMock(spec=CredentialStore)

    async def _run(fn):
        return await fn(store)

    store.run_in_transaction.side_effect = _run
    return store
