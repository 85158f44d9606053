"""Schema creation for the identity tables."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

# Registers the models on IdentityBase.metadata
import speedcoding_identity.infrastructure.persistence.sqlalchemy.models  # noqa: F401
from speedcoding_identity.infrastructure.persistence.sqlalchemy.base import IdentityBase

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    """Create the users, refresh_tokens and social_connections tables.

    Tables that already exist are left as they are, so this is safe to run
    on every deploy.
    """
    async with engine.begin() as conn:
        await conn.run_sync(IdentityBase.metadata.create_all)
    logger.info("Identity schema created (existing tables untouched)")


async def drop_tables(engine: AsyncEngine) -> None:
    """Drop every identity table, including its data."""
    logger.warning("Dropping identity tables")
    async with engine.begin() as conn:
        await conn.run_sync(IdentityBase.metadata.drop_all)
