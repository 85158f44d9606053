"""
Pytest configuration for speedcoding_identity integration tests.

Every test gets a fresh file-backed SQLite database under ``tmp_path``.
A file (rather than ``:memory:``) lets concurrent sessions share it.
"""

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio

from speedcoding_identity import (
    AuthConfig,
    CredentialLifecycleService,
    MailDeliveryError,
    MailSender,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy import (
    CredentialStoreSQLAlchemy,
    create_engine,
    create_session_factory,
)
from speedcoding_identity.infrastructure.persistence.sqlalchemy.init_db import (
    create_tables,
)

FRONTEND_URL = "https://speedcoding.test"


class RecordingMailSender(MailSender):
    """MailSender that keeps every message in memory."""

    def __init__(self):
        self.verification_emails: list[dict] = []
        self.reset_emails: list[dict] = []
        self.fail = False
        # When set, reset emails wait for the event before being recorded
        self.gate: asyncio.Event | None = None

    async def send_verification_email(self, to_email, username, verification_link):
        if self.fail:
            raise MailDeliveryError("SMTP unavailable")
        self.verification_emails.append(
            {"to": to_email, "username": username, "link": verification_link}
        )

    async def send_password_reset_email(self, to_email, username, reset_link):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise MailDeliveryError("SMTP unavailable")
        self.reset_emails.append({"to": to_email, "username": username, "link": reset_link})

    @staticmethod
    def token_from(mail: dict) -> str:
        return parse_qs(urlparse(mail["link"]).query)["token"][0]

    @property
    def last_verification_token(self) -> str:
        return self.token_from(self.verification_emails[-1])

    @property
    def last_reset_token(self) -> str:
        return self.token_from(self.reset_emails[-1])


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine with the identity schema created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'identity.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory) -> CredentialStoreSQLAlchemy:
    return CredentialStoreSQLAlchemy(session_factory)


@pytest.fixture
def mail_sender() -> RecordingMailSender:
    return RecordingMailSender()


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        access_secret_key="integration-access-secret",
        refresh_secret_key="integration-refresh-secret",
        bcrypt_rounds=4,
        frontend_base_url=FRONTEND_URL,
    )


@pytest.fixture
def lifecycle(auth_config, store, mail_sender, clock) -> CredentialLifecycleService:
    return CredentialLifecycleService.from_config(auth_config, store, mail_sender, clock)
