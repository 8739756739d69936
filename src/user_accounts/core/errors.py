"""Custom exception hierarchy for the user accounts service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from user_accounts.domain.users import User


class UserAccountsError(Exception):
    """Base exception for all user accounts errors."""


# --- Configuration ---
class ConfigError(UserAccountsError):
    """Invalid or missing configuration."""


# --- Store ---
class StoreError(UserAccountsError):
    """Versioned store failure."""


class NotFoundError(StoreError):
    """No visible (non-disabled) row for the given identity."""


class VersionConflictError(StoreError):
    """Expected version does not match the stored version."""


class RowLockedError(VersionConflictError):
    """Row lock is held by another transaction (NOWAIT contention)."""


class DuplicateKeyError(StoreError):
    """Uniqueness constraint violated on write."""


class InfrastructureError(StoreError):
    """Connection, timeout or unexpected driver failure."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


# --- Service ---
class ServiceError(UserAccountsError):
    """Use-case level failure."""


class UserNotFoundError(ServiceError):
    """User does not exist or has been disabled."""


class NoChangesError(ServiceError):
    """Update requested without any field deltas."""

    def __init__(self, user: User):
        self.user = user
        super().__init__(f"no changes for user {user.id}")


class InvalidFilterError(ServiceError):
    """Filter keys outside the allow-list."""

    def __init__(self, fields: Iterable[str]):
        self.fields = sorted(fields)
        super().__init__(f"fields not filterable: {', '.join(self.fields)}")


# --- Publishing ---
class PublishError(UserAccountsError):
    """Event could not be handed to the message bus."""
