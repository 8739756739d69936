"""Test UserEvent serialisation and UserPublisher error wrapping."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from user_accounts.core.enums import ChangeKind
from user_accounts.core.errors import PublishError
from user_accounts.domain.users import User
from user_accounts.event_bus.publisher import UserPublisher
from user_accounts.event_bus.schemas import UserEvent


def _user(disabled: bool = False) -> User:
    now = datetime(2020, 1, 1, tzinfo=timezone.utc)
    return User.hydrate(
        3, "Test", "Test", "testuser", "qwerty", "example@example.qqq", "uk",
        version=4, created_at=now, updated_at=now, disabled=disabled,
    )


class TestUserEvent:
    def test_from_user_copies_fields(self):
        event = UserEvent.from_user(_user(), ChangeKind.UPDATED)
        assert event.id == 3
        assert event.nickname == "testuser"
        assert event.country == "uk"
        assert event.version == 4
        assert event.change == ChangeKind.UPDATED
        assert event.source_module == "users"

    def test_active_is_inverse_of_disabled(self):
        assert UserEvent.from_user(_user(), ChangeKind.CREATED).active is True
        assert UserEvent.from_user(_user(disabled=True), ChangeKind.CREATED).active is False

    def test_password_is_never_serialised(self):
        event = UserEvent.from_user(_user(), ChangeKind.CREATED)
        assert "password" not in event.model_dump()
        assert "qwerty" not in event.model_dump_json()

    def test_each_event_gets_its_own_id(self):
        a = UserEvent.from_user(_user(), ChangeKind.CREATED)
        b = UserEvent.from_user(_user(), ChangeKind.CREATED)
        assert a.event_id != b.event_id


class TestUserPublisher:
    async def test_publishes_to_configured_topic(self, memory_bus):
        publisher = UserPublisher(memory_bus, topic="accounts")
        await publisher.publish(_user(), ChangeKind.CREATED)

        [(topic, event)] = memory_bus.get_history()
        assert topic == "accounts"
        assert event.id == 3

    async def test_bus_failure_is_wrapped(self):
        bus = AsyncMock()
        bus.publish.side_effect = ConnectionError("redis down")
        publisher = UserPublisher(bus)

        with pytest.raises(PublishError) as exc_info:
            await publisher.publish(_user(), ChangeKind.UPDATED)

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert "user 3" in str(exc_info.value)
