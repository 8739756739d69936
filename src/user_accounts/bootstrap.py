"""Application bootstrap.

Wires settings, database, store, event bus, publisher and service
together.  Everything is built from one :class:`Settings` instance and
torn down when the context exits.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from .core.config import Settings
from .event_bus.bus import create_event_bus
from .event_bus.memory_bus import MemoryEventBus
from .event_bus.publisher import UserPublisher
from .event_bus.redis_streams import RedisStreamsBus
from .services.users import UserService
from .storage.postgres.connection import Database, create_all
from .storage.postgres.repos import UserStore

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Live components for one process."""

    settings: Settings
    database: Database
    bus: MemoryEventBus | RedisStreamsBus
    store: UserStore
    service: UserService


@asynccontextmanager
async def open_runtime(
    settings: Settings,
    *,
    create_tables: bool = False,
    use_null_pool: bool = False,
) -> AsyncIterator[Runtime]:
    """Build the runtime, yield it, and release pool and bus on exit.

    Args:
        settings: Loaded application settings.
        create_tables: Create the ``users`` table if missing (dev/test).
        use_null_pool: Disable pooling for short-lived processes.
    """
    settings.validate_filterable_fields()

    database = Database.from_config(settings.database, use_null_pool=use_null_pool)
    bus = create_event_bus(settings.bus)
    try:
        if create_tables:
            await create_all(database.engine)

        store = UserStore(
            database.session_factory,
            filterable_fields=settings.users.filterable_fields,
            timeout=settings.database.operation_timeout,
        )
        publisher = UserPublisher(bus, topic=settings.bus.topic)
        service = UserService(store, publisher=publisher)

        await bus.start()
        logger.info("User accounts runtime started (bus=%s)", settings.bus.backend.value)
        try:
            yield Runtime(
                settings=settings,
                database=database,
                bus=bus,
                store=store,
                service=service,
            )
        finally:
            await bus.stop()
    finally:
        await database.dispose()
        logger.info("Shutdown complete")
