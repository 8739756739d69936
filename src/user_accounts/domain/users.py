"""User aggregate.

A mutable, identity-bearing record.  Assigning a business field through
its property setter records the field in :attr:`User.meta` so the service
can tell a real update from a no-op.  The aggregate knows nothing about
storage or transport.
"""

from __future__ import annotations

from datetime import datetime

from user_accounts.core.enums import UserField

from .meta import Meta


class User:
    """Versioned user account."""

    def __init__(
        self,
        id: int = 0,
        first_name: str = "",
        last_name: str = "",
        nickname: str = "",
        password: str = "",
        email: str = "",
        country: str = "",
        meta: Meta | None = None,
    ) -> None:
        self.id = id
        self._first_name = first_name
        self._last_name = last_name
        self._nickname = nickname
        self._password = password
        self._email = email
        self._country = country
        self.meta = meta if meta is not None else Meta()

    @classmethod
    def new(
        cls,
        first_name: str = "",
        last_name: str = "",
        nickname: str = "",
        password: str = "",
        email: str = "",
        country: str = "",
    ) -> User:
        """Build an unpersisted user at version 0."""
        return cls(
            id=0,
            first_name=first_name,
            last_name=last_name,
            nickname=nickname,
            password=password,
            email=email,
            country=country,
        )

    @classmethod
    def hydrate(
        cls,
        id: int,
        first_name: str,
        last_name: str,
        nickname: str,
        password: str,
        email: str,
        country: str,
        *,
        version: int,
        created_at: datetime,
        updated_at: datetime,
        disabled: bool,
    ) -> User:
        """Rebuild a user from stored values.  The change set stays empty."""
        user = cls(id, first_name, last_name, nickname, password, email, country)
        user.meta.hydrate(version, created_at, updated_at, disabled)
        return user

    # Business fields ------------------------------------------------------

    @property
    def first_name(self) -> str:
        return self._first_name

    @first_name.setter
    def first_name(self, value: str) -> None:
        self._first_name = value
        self.meta.register_changes(UserField.FIRST_NAME)

    @property
    def last_name(self) -> str:
        return self._last_name

    @last_name.setter
    def last_name(self, value: str) -> None:
        self._last_name = value
        self.meta.register_changes(UserField.LAST_NAME)

    @property
    def nickname(self) -> str:
        return self._nickname

    @nickname.setter
    def nickname(self, value: str) -> None:
        self._nickname = value
        self.meta.register_changes(UserField.NICKNAME)

    @property
    def password(self) -> str:
        return self._password

    @password.setter
    def password(self, value: str) -> None:
        self._password = value
        self.meta.register_changes(UserField.PASSWORD)

    @property
    def email(self) -> str:
        return self._email

    @email.setter
    def email(self, value: str) -> None:
        self._email = value
        self.meta.register_changes(UserField.EMAIL)

    @property
    def country(self) -> str:
        return self._country

    @country.setter
    def country(self, value: str) -> None:
        self._country = value
        self.meta.register_changes(UserField.COUNTRY)

    # Helpers --------------------------------------------------------------

    @property
    def version(self) -> int:
        return self.meta.version

    def field_values(self) -> dict[str, str]:
        """Return the business fields keyed by column name."""
        return {field.value: getattr(self, field.value) for field in UserField}

    def is_zero(self) -> bool:
        """True for the structurally empty user (no id, no field values)."""
        return self.id == 0 and not any(self.field_values().values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return (
            self.id == other.id
            and self.field_values() == other.field_values()
            and self.meta.version == other.meta.version
            and self.meta.disabled == other.meta.disabled
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, nickname={self._nickname!r}, "
            f"version={self.meta.version}, disabled={self.meta.disabled})>"
        )
