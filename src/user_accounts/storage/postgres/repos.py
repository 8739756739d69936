"""Versioned user store.

:class:`UserStore` owns every transactional concern of the user table:
row locking, version comparison, insert-vs-update branching, soft delete
and hydration of :class:`~user_accounts.domain.users.User` aggregates.

Each public call opens its own session and transaction from the injected
session factory; nothing is carried across calls.

Write protocol (:meth:`UserStore.store`)
----------------------------------------
1. ``SELECT version ... FOR UPDATE NOWAIT`` on the target id.  A missing
   row reads as version 0.  A held lock fails immediately with
   :class:`RowLockedError`; nothing waits or retries.
2. Current version != expected version -> :class:`VersionConflictError`.
3. Version 0 -> INSERT at version 1.  Otherwise UPDATE to ``current + 1``
   guarded by ``WHERE id = :id AND version = :expected``.
4. A uniqueness violation on either path -> :class:`DuplicateKeyError`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Mapping, Sequence

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from user_accounts.core.errors import (
    ConfigError,
    DuplicateKeyError,
    InfrastructureError,
    NotFoundError,
    RowLockedError,
    StoreError,
    VersionConflictError,
)
from user_accounts.domain.users import User
from user_accounts.observability.metrics import record_store_outcome

from .filters import compose_filters
from .models import UserRecord

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
LOCK_NOT_AVAILABLE = "55P03"

DEFAULT_FILTERABLE_FIELDS = ("first_name", "last_name", "nickname", "email", "country")


# ---------------------------------------------------------------------------
# Conversion and error helpers
# ---------------------------------------------------------------------------

def _record_to_user(record: UserRecord) -> User:
    """Convert an ORM :class:`UserRecord` to a :class:`User` with no changes."""
    return User.hydrate(
        record.id,
        record.first_name,
        record.last_name,
        record.nickname,
        record.password,
        record.email,
        record.country,
        version=record.version,
        created_at=record.created_at,
        updated_at=record.updated_at,
        disabled=record.disabled,
    )


def _sqlstate(exc: DBAPIError) -> str | None:
    """Return the SQLSTATE of a driver error, if the driver exposes one."""
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def _is_unique_violation(exc: IntegrityError) -> bool:
    code = _sqlstate(exc)
    if code is not None:
        return code == UNIQUE_VIOLATION
    # Drivers without SQLSTATE (sqlite) only expose the message.
    return "UNIQUE constraint failed" in str(exc.orig)


_OUTCOMES: tuple[tuple[type[StoreError], str], ...] = (
    (NotFoundError, "not_found"),
    (RowLockedError, "locked"),
    (VersionConflictError, "conflict"),
    (DuplicateKeyError, "duplicate"),
)


def _outcome_for(exc: StoreError) -> str:
    for exc_type, outcome in _OUTCOMES:
        if isinstance(exc, exc_type):
            return outcome
    return "error"


# ---------------------------------------------------------------------------
# UserStore
# ---------------------------------------------------------------------------

class UserStore:
    """Optimistic-concurrency store for :class:`User` aggregates."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        filterable_fields: Iterable[str] = DEFAULT_FILTERABLE_FIELDS,
        timeout: float | None = None,
    ) -> None:
        columns = UserRecord.__table__.c
        unknown = [name for name in filterable_fields if name not in columns]
        if unknown:
            raise ConfigError(f"unknown filterable fields: {', '.join(unknown)}")

        self._session_factory = session_factory
        self._allowed = {name: columns[name] for name in filterable_fields}
        self._timeout = timeout

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Apply the deadline, translate driver errors and record metrics.

        Transactions opened inside the block have already been rolled back
        by the time an exception reaches this point.
        """
        started = time.perf_counter()
        outcome = "error"
        try:
            async with asyncio.timeout(self._timeout):
                yield
            outcome = "ok"
        except StoreError as exc:
            outcome = _outcome_for(exc)
            raise
        except asyncio.CancelledError:
            outcome = "cancelled"
            raise
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                outcome = "duplicate"
                raise DuplicateKeyError(f"{operation}: duplicate nickname") from exc
            raise InfrastructureError(operation, str(exc.orig)) from exc
        except DBAPIError as exc:
            if _sqlstate(exc) == LOCK_NOT_AVAILABLE:
                outcome = "locked"
                raise RowLockedError(f"{operation}: row is locked by another transaction") from exc
            raise InfrastructureError(operation, str(exc.orig)) from exc
        except TimeoutError as exc:
            raise InfrastructureError(operation, f"timed out after {self._timeout}s") from exc
        except (SQLAlchemyError, OSError) as exc:
            raise InfrastructureError(operation, str(exc)) from exc
        finally:
            record_store_outcome(operation, outcome, time.perf_counter() - started)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, user_id: int) -> User:
        """Fetch a non-disabled user by id.

        Raises:
            NotFoundError: If no visible row has this id.
        """
        async with self._guard("get"):
            async with self._session_factory() as session:
                stmt = select(UserRecord).where(
                    UserRecord.id == user_id,
                    UserRecord.disabled.is_(False),
                )
                result = await session.execute(stmt)
                record = result.scalar_one_or_none()
                if record is None:
                    raise NotFoundError(f"user {user_id} not found")
                return _record_to_user(record)

    async def list(self, filters: Mapping[str, Any] | None = None) -> list[User]:
        """Return every non-disabled user matching all *filters*, by id.

        Raises:
            InvalidFilterError: If a filter key is not in the allow-list.
        """
        equality = compose_filters(filters, self._allowed)

        async with self._guard("list"):
            async with self._session_factory() as session:
                stmt = (
                    select(UserRecord)
                    .where(UserRecord.disabled.is_(False), *equality.clauses)
                    .order_by(UserRecord.id.asc())
                )
                result = await session.execute(stmt)
                records: Sequence[UserRecord] = result.scalars().all()
                return [_record_to_user(r) for r in records]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def store(self, user: User, expected_version: int) -> User:
        """Create or update *user* if the stored version equals *expected_version*.

        Returns:
            A fresh :class:`User` reflecting the persisted row.

        Raises:
            VersionConflictError: Stored version differs from the expected one.
            RowLockedError: Another transaction holds the row lock.
            DuplicateKeyError: The nickname is already taken.
            InfrastructureError: Driver, connection or timeout failure.
        """
        async with self._guard("store"):
            async with self._session_factory() as session:
                async with session.begin():
                    current = await self._lock_for_update(session, user.id)
                    if current != expected_version:
                        raise VersionConflictError(
                            f"user {user.id}: expected version {expected_version}, "
                            f"found {current}"
                        )

                    if current == 0:
                        record = await self._create(session, user)
                        logger.debug("Inserted user %s", record.id)
                    else:
                        record = await self._update(session, user, current)
                        logger.debug("Updated user %s -> version=%s", record.id, record.version)

                return _record_to_user(record)

    async def delete(self, user_id: int) -> None:
        """Soft-delete a user.

        Idempotent: deleting a disabled or unknown id succeeds silently.
        """
        async with self._guard("delete"):
            async with self._session_factory() as session:
                async with session.begin():
                    stmt = (
                        update(UserRecord)
                        .where(UserRecord.id == user_id)
                        .values(disabled=True, updated_at=func.now())
                        .execution_options(synchronize_session=False)
                    )
                    result = await session.execute(stmt)
            logger.debug("Disabled user %s (rows=%s)", user_id, result.rowcount)

    # ------------------------------------------------------------------
    # Transaction steps
    # ------------------------------------------------------------------

    async def _lock_for_update(self, session: AsyncSession, user_id: int) -> int:
        stmt = (
            select(UserRecord.version)
            .where(UserRecord.id == user_id)
            .with_for_update(nowait=True)
        )
        result = await session.execute(stmt)
        current = result.scalar_one_or_none()
        return 0 if current is None else current

    async def _create(self, session: AsyncSession, user: User) -> UserRecord:
        stmt = (
            insert(UserRecord)
            .values(**user.field_values(), version=1)
            .returning(UserRecord)
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    async def _update(self, session: AsyncSession, user: User, current: int) -> UserRecord:
        stmt = (
            update(UserRecord)
            .where(UserRecord.id == user.id, UserRecord.version == current)
            .values(**user.field_values(), version=current + 1, updated_at=func.now())
            .returning(UserRecord)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        record = result.scalar_one_or_none()
        if record is None:
            raise VersionConflictError(f"user {user.id}: version {current} changed during update")
        return record
