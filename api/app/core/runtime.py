"""Composition root: builds the gateway, Pluggy client, synchronizer and dispatcher.

The API builds one runtime in its lifespan. Celery tasks build their own per
task because each task runs its own event loop.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.core.database import create_engine_for, create_session_factory
from app.services.pluggy_client import PluggyClient, has_pluggy_credentials
from app.services.store import PersistenceGateway
from app.services.sync import ItemSynchronizer
from app.services.webhook import WebhookDispatcher

logger = logging.getLogger(__name__)


@dataclass
class SyncRuntime:
    gateway: PersistenceGateway
    provider: PluggyClient | None
    synchronizer: ItemSynchronizer
    dispatcher: WebhookDispatcher

    async def aclose(self) -> None:
        if self.provider is not None:
            await self.provider.aclose()


def build_runtime(
    settings: Settings,
    sessionmaker: async_sessionmaker[AsyncSession],
    provider: PluggyClient | None = None,
) -> SyncRuntime:
    if provider is None and has_pluggy_credentials(settings):
        provider = PluggyClient.from_settings(settings)
    if provider is None:
        logger.warning("Pluggy credentials missing; provider calls are disabled")
    gateway = PersistenceGateway(sessionmaker)
    synchronizer = ItemSynchronizer(provider, gateway)
    return SyncRuntime(
        gateway=gateway,
        provider=provider,
        synchronizer=synchronizer,
        dispatcher=WebhookDispatcher(gateway, provider, synchronizer),
    )


@asynccontextmanager
async def sync_runtime(
    settings: Settings,
    sessionmaker: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[SyncRuntime]:
    """Runtime for one unit of work; owns a fresh engine unless given a sessionmaker."""
    engine = None
    if sessionmaker is None:
        engine = create_engine_for(settings.database_url)
        sessionmaker = create_session_factory(engine)
    runtime = build_runtime(settings, sessionmaker)
    try:
        yield runtime
    finally:
        await runtime.aclose()
        if engine is not None:
            await engine.dispose()
