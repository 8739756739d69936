"""Event schemas published on the message bus.

All events inherit from BaseEvent and are Pydantic models.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from user_accounts.core.enums import ChangeKind
from user_accounts.core.ids import new_id, utc_now
from user_accounts.domain.users import User


class BaseEvent(BaseModel):
    """Base for all events. Provides identity and time."""

    event_id: str = Field(default_factory=new_id)
    timestamp: datetime = Field(default_factory=utc_now)
    source_module: str = ""


class UserEvent(BaseEvent):
    """Snapshot of a committed user.  The password is never included."""

    source_module: str = "users"
    change: ChangeKind
    id: int
    first_name: str
    last_name: str
    nickname: str
    email: str
    country: str
    created_at: datetime
    updated_at: datetime
    active: bool
    version: int

    @classmethod
    def from_user(cls, user: User, change: ChangeKind) -> UserEvent:
        return cls(
            change=change,
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            nickname=user.nickname,
            email=user.email,
            country=user.country,
            created_at=user.meta.created_at,
            updated_at=user.meta.updated_at,
            active=not user.meta.disabled,
            version=user.meta.version,
        )
