"""Publishes committed users to the message bus."""

from __future__ import annotations

import logging

from user_accounts.core.enums import ChangeKind
from user_accounts.core.errors import PublishError
from user_accounts.core.interfaces import IEventBus
from user_accounts.domain.users import User
from user_accounts.observability.metrics import EVENTS_PUBLISHED_TOTAL

from .schemas import UserEvent

logger = logging.getLogger(__name__)


class UserPublisher:
    """Serialises a :class:`User` into a :class:`UserEvent` and publishes it."""

    def __init__(self, bus: IEventBus, topic: str = "users") -> None:
        self._bus = bus
        self._topic = topic

    async def publish(self, user: User, change: ChangeKind) -> None:
        event = UserEvent.from_user(user, change)
        try:
            await self._bus.publish(self._topic, event)
        except Exception as exc:
            raise PublishError(
                f"failed to publish {change.value} event for user {user.id}"
            ) from exc

        EVENTS_PUBLISHED_TOTAL.labels(change=change.value).inc()
        logger.debug(
            "Published %s event %s for user %s (version=%s)",
            change.value,
            event.event_id,
            user.id,
            user.version,
        )
