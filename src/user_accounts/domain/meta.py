"""Versioned metadata with change tracking.

Every aggregate embeds a :class:`Meta`.  The service layer inspects
:attr:`Meta.has_changes` to detect no-op updates before touching storage.

Rules
-----
- A fresh ``Meta`` is at version 0 with an empty change set.
- :meth:`Meta.hydrate` is the only way to set metadata directly and it
  never records a change.
- Changes are cleared only by :meth:`Meta.clear_changes`; persisting an
  aggregate does not clear them.
"""

from __future__ import annotations

from datetime import datetime

from user_accounts.core.enums import UserField
from user_accounts.core.ids import utc_now


class Meta:
    """Version, timestamps, soft-delete flag and the set of changed fields."""

    __slots__ = ("_version", "_created_at", "_updated_at", "_disabled", "_changes")

    def __init__(self) -> None:
        now = utc_now()
        self._version = 0
        self._created_at = now
        self._updated_at = now
        self._disabled = False
        self._changes: set[UserField] = set()

    def hydrate(
        self,
        version: int,
        created_at: datetime,
        updated_at: datetime,
        disabled: bool,
    ) -> None:
        if version < 0:
            raise ValueError(f"version must be non-negative, got {version}")
        self._version = version
        self._created_at = created_at
        self._updated_at = updated_at
        self._disabled = disabled

    # Change tracking ------------------------------------------------------

    def register_changes(self, *fields: UserField) -> None:
        self._changes.update(fields)

    def clear_changes(self) -> None:
        self._changes.clear()

    @property
    def has_changes(self) -> bool:
        return bool(self._changes)

    @property
    def changes(self) -> frozenset[UserField]:
        return frozenset(self._changes)

    # Read-only accessors --------------------------------------------------

    @property
    def version(self) -> int:
        return self._version

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def disabled(self) -> bool:
        return self._disabled

    def __repr__(self) -> str:
        return (
            f"<Meta(version={self._version}, disabled={self._disabled}, "
            f"changes={sorted(f.value for f in self._changes)})>"
        )
