"""Composition root wiring settings to the identity services."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from speedcoding_auth.clock import Clock, utc_now
from speedcoding_config.settings import Settings
from speedcoding_identity.application.services import CredentialLifecycleService
from speedcoding_identity.config import AuthConfig
from speedcoding_identity.infrastructure.email import SmtpMailSender
from speedcoding_identity.infrastructure.persistence.sqlalchemy import (
    CredentialStoreSQLAlchemy,
    create_engine,
    create_session_factory,
)


@dataclass(frozen=True)
class IdentityContainer:
    """Long-lived objects shared by all requests."""

    engine: AsyncEngine
    store: CredentialStoreSQLAlchemy
    lifecycle: CredentialLifecycleService

    async def dispose(self) -> None:
        await self.lifecycle.wait_for_pending_mail()
        await self.engine.dispose()


def build_identity(settings: Settings, clock: Clock = utc_now) -> IdentityContainer:
    config = AuthConfig.from_settings(settings)
    engine = create_engine(settings.database_url)
    store = CredentialStoreSQLAlchemy(create_session_factory(engine))
    lifecycle = CredentialLifecycleService.from_config(
        config,
        store=store,
        mail_sender=SmtpMailSender(settings),
        clock=clock,
    )
    return IdentityContainer(engine=engine, store=store, lifecycle=lifecycle)
