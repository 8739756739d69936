"""In-process event bus.

Used by the test suite and by local runs with ``bus.backend = "memory"``.
Every published event is kept in a history list so tests can assert on
exactly what the service emitted.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Awaitable, Callable

from .schemas import BaseEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[BaseEvent], Awaitable[None]]


class MemoryEventBus:
    """Delivers events to subscribers within one event loop."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[tuple[str, EventHandler]]] = defaultdict(list)
        self._published: list[tuple[str, BaseEvent]] = []
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False

    async def subscribe(self, topic: str, group: str, handler: EventHandler) -> None:
        self._subscribers[topic].append((group, handler))

    async def publish(self, topic: str, event: BaseEvent) -> None:
        """Record *event* and hand it to each subscriber of *topic* in order.

        A failing subscriber is logged and skipped; the publisher never sees it.
        """
        self._published.append((topic, event))

        for group, handler in list(self._subscribers.get(topic, ())):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Subscriber %s failed on %s event %s",
                    group,
                    topic,
                    event.event_id,
                )

    def get_history(self, topic: str | None = None) -> list[tuple[str, BaseEvent]]:
        """Published ``(topic, event)`` pairs, oldest first."""
        return [item for item in self._published if topic is None or item[0] == topic]

    def clear_history(self) -> None:
        self._published.clear()
