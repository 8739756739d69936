"""Enumerations used across the user accounts service."""

from enum import Enum


class UserField(str, Enum):
    """Mutable business fields of a user; doubles as the change marker."""

    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    NICKNAME = "nickname"
    PASSWORD = "password"
    EMAIL = "email"
    COUNTRY = "country"


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class BusBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"
