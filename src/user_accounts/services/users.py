"""User use cases on top of the versioned store.

:class:`UserService` composes the change-tracking :class:`User` aggregate
with an :class:`~user_accounts.core.interfaces.IUserStore`:

- reads translate storage-level ``NotFoundError`` into
  :class:`UserNotFoundError`;
- updates apply only supplied, differing fields and refuse to write when
  nothing changed (:class:`NoChangesError`);
- successful creates/updates are handed to the optional publisher.  A
  failed publish is logged and counted; the committed write stands.

Store errors (``VersionConflictError``, ``DuplicateKeyError``,
``InfrastructureError``) propagate unchanged.  Nothing is retried here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from user_accounts.core.enums import ChangeKind, UserField
from user_accounts.core.errors import (
    NoChangesError,
    NotFoundError,
    UserNotFoundError,
)
from user_accounts.core.interfaces import IUserPublisher, IUserStore
from user_accounts.domain.users import User
from user_accounts.observability.metrics import (
    NO_CHANGE_UPDATES_TOTAL,
    PUBLISH_FAILURES_TOTAL,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreateUserParams:
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""
    password: str = ""
    email: str = ""
    country: str = ""


@dataclass(frozen=True)
class UpdateUserParams:
    """Empty strings mean "leave unchanged"; ``version`` is the expected version."""

    id: int
    version: int
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""
    password: str = ""
    email: str = ""
    country: str = ""


@dataclass(frozen=True)
class DeleteUserParams:
    id: int


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class UserService:
    """Get/list/create/update/delete use cases for user accounts."""

    def __init__(
        self,
        store: IUserStore,
        publisher: IUserPublisher | None = None,
    ) -> None:
        self._store = store
        self._publisher = publisher

    async def get_user(self, user_id: int) -> User:
        try:
            user = await self._store.get(user_id)
        except NotFoundError as exc:
            raise UserNotFoundError(f"user {user_id} not found") from exc

        if user.is_zero():
            raise UserNotFoundError(f"user {user_id} not found")
        return user

    async def list_users(self, filters: Mapping[str, Any] | None = None) -> list[User]:
        return await self._store.list(filters or {})

    async def create_user(self, params: CreateUserParams) -> User:
        user = User.new(
            first_name=params.first_name,
            last_name=params.last_name,
            nickname=params.nickname,
            password=params.password,
            email=params.email,
            country=params.country,
        )
        created = await self._store.store(user, 0)
        logger.info("Created user %s", created.id)

        await self._notify(created, ChangeKind.CREATED)
        return created

    async def update_user(self, params: UpdateUserParams) -> User:
        user = await self.get_user(params.id)

        for field in UserField:
            value = getattr(params, field.value)
            if value and value != getattr(user, field.value):
                setattr(user, field.value, value)

        if not user.meta.has_changes:
            NO_CHANGE_UPDATES_TOTAL.inc()
            raise NoChangesError(user)

        changed = sorted(f.value for f in user.meta.changes)
        updated = await self._store.store(user, params.version)
        logger.info(
            "Updated user %s fields=%s version=%s",
            updated.id,
            ",".join(changed),
            updated.version,
        )

        await self._notify(updated, ChangeKind.UPDATED)
        return updated

    async def delete_user(self, params: DeleteUserParams) -> None:
        await self._store.delete(params.id)
        logger.info("Deleted user %s", params.id)

    async def _notify(self, user: User, change: ChangeKind) -> None:
        if self._publisher is None:
            return
        try:
            await self._publisher.publish(user, change)
        except Exception:
            PUBLISH_FAILURES_TOTAL.labels(change=change.value).inc()
            logger.exception("Failed to publish %s event for user %s", change.value, user.id)
