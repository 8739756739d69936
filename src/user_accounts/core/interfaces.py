"""Protocol interfaces for the user accounts service.

Module boundaries are defined here as Protocol classes so the service can
be exercised against in-memory fakes and the bus swapped between memory
and Redis without changing callers.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from user_accounts.core.enums import ChangeKind
from user_accounts.domain.users import User
from user_accounts.event_bus.schemas import BaseEvent


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IUserStore(Protocol):
    """Versioned aggregate store consumed by the service layer."""

    async def get(self, user_id: int) -> User: ...

    async def list(self, filters: Mapping[str, Any] | None = None) -> list[User]: ...

    async def store(self, user: User, expected_version: int) -> User: ...

    async def delete(self, user_id: int) -> None: ...


# ---------------------------------------------------------------------------
# Event Bus
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventBus(Protocol):
    """Publish side of the message bus."""

    async def publish(self, topic: str, event: BaseEvent) -> None: ...

    async def start(self) -> None: ...
    async def stop(self) -> None: ...


@runtime_checkable
class IUserPublisher(Protocol):
    """Hands committed users to the message bus."""

    async def publish(self, user: User, change: ChangeKind) -> None: ...
