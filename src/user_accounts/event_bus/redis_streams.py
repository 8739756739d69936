"""Redis Streams publisher for user events.

Each topic maps to one stream.  Entries carry the event class name and
its JSON body so downstream consumer groups can decode them without
sharing this package.  The stream is capped with ``MAXLEN ~``.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis

from .schemas import BaseEvent

logger = logging.getLogger(__name__)


class RedisStreamsBus:
    """Appends events to Redis Streams with ``XADD``."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        max_stream_length: int = 10_000,
    ) -> None:
        self._url = redis_url
        self._max_stream_length = max_stream_length
        self._client: aioredis.Redis | None = None

    @property
    def is_running(self) -> bool:
        return self._client is not None

    async def start(self) -> None:
        self._client = aioredis.from_url(self._url, decode_responses=True)
        # Strip credentials before logging the address.
        logger.info("Publishing user events to Redis at %s", self._url.rsplit("@", 1)[-1])

    async def stop(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def publish(self, topic: str, event: BaseEvent) -> None:
        if self._client is None:
            raise RuntimeError("RedisStreamsBus not started")

        entry = {"_type": type(event).__name__, "_data": event.model_dump_json()}
        await self._client.xadd(
            topic, entry, maxlen=self._max_stream_length, approximate=True,
        )
