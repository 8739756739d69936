"""Event bus factory.

Creates the appropriate event bus implementation for the configured backend.
"""

from __future__ import annotations

from user_accounts.core.config import BusConfig
from user_accounts.core.enums import BusBackend

from .memory_bus import MemoryEventBus
from .redis_streams import RedisStreamsBus


def create_event_bus(config: BusConfig) -> MemoryEventBus | RedisStreamsBus:
    """Create an event bus for the given backend.

    - MEMORY: MemoryEventBus (no external deps, deterministic)
    - REDIS: RedisStreamsBus (persistent, observable)
    """
    if config.backend == BusBackend.MEMORY:
        return MemoryEventBus()
    return RedisStreamsBus(
        redis_url=config.redis_url,
        max_stream_length=config.max_stream_length,
    )
