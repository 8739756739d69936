"""Shared fixtures for the user-accounts test suite."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator

import pytest

from user_accounts.domain.users import User
from user_accounts.event_bus.memory_bus import MemoryEventBus
from user_accounts.event_bus.publisher import UserPublisher
from user_accounts.services.users import UserService
from user_accounts.storage.postgres.connection import (
    Database,
    create_all,
    create_engine,
    create_session_factory,
)
from user_accounts.storage.postgres.repos import UserStore


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """Return a URL for a throwaway file-backed SQLite database."""
    return f"sqlite+aiosqlite:///{tmp_path / 'users.db'}"


@pytest.fixture
async def database(sqlite_url: str) -> AsyncIterator[Database]:
    """Return a Database with the users table created."""
    engine = create_engine(sqlite_url, use_null_pool=True)
    await create_all(engine)
    db = Database(engine=engine, session_factory=create_session_factory(engine))
    yield db
    await db.dispose()


@pytest.fixture
def user_store(database: Database) -> UserStore:
    return UserStore(database.session_factory)


# ---------------------------------------------------------------------------
# Event bus / service
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_bus() -> MemoryEventBus:
    """Return a fresh MemoryEventBus instance."""
    return MemoryEventBus()


@pytest.fixture
def user_publisher(memory_bus: MemoryEventBus) -> UserPublisher:
    return UserPublisher(memory_bus, topic="users")


@pytest.fixture
def user_service(user_store: UserStore, user_publisher: UserPublisher) -> UserService:
    return UserService(user_store, publisher=user_publisher)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

def make_user(**overrides: str) -> User:
    """Build an unpersisted user with sensible defaults."""
    fields = {
        "first_name": "Test",
        "last_name": "Test",
        "nickname": "testuser",
        "password": "qwerty",
        "email": "example@example.qqq",
        "country": "uk",
    }
    fields.update(overrides)
    return User.new(**fields)


@pytest.fixture
def new_user():
    """Return the :func:`make_user` factory."""
    return make_user


@pytest.fixture
async def seeded_users(user_store: UserStore) -> list[User]:
    """Persist two users: ``testuser`` (uk) and ``testuser-2`` (ab)."""
    first = await user_store.store(make_user(), 0)
    second = await user_store.store(make_user(nickname="testuser-2", country="ab"), 0)
    return [first, second]
