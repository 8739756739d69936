"""Engine and session factory for the user store.

There is no module-level engine.  The process builds one :class:`Database`
from :class:`~user_accounts.core.config.DatabaseConfig` at startup, hands
its ``session_factory`` to :class:`~user_accounts.storage.postgres.repos.UserStore`
and disposes it on shutdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from user_accounts.core.config import DatabaseConfig

from .models import Base

logger = logging.getLogger(__name__)


def create_engine(
    url: str,
    *,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
    use_null_pool: bool = False,
) -> AsyncEngine:
    """Create an async engine for *url*.

    Args:
        url: SQLAlchemy URL; ``postgresql+asyncpg://`` in production,
            ``sqlite+aiosqlite://`` in tests.
        pool_size, max_overflow, pool_timeout, pool_recycle: Queue pool
            sizing, ignored when *use_null_pool* is set.
        echo: Log every emitted statement.
        use_null_pool: Open a fresh connection per checkout.  Used by the
            CLI and tests, where each process or test owns its engine.
    """
    options: dict[str, Any] = {"echo": echo}
    if use_null_pool:
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
        )

    engine = create_async_engine(url, **options)
    logger.info(
        "Database engine ready for %s (pooled=%s)",
        url.rsplit("@", 1)[-1],
        not use_null_pool,
    )
    return engine


def engine_from_config(config: DatabaseConfig, *, use_null_pool: bool = False) -> AsyncEngine:
    return create_engine(
        config.url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        echo=config.echo,
        use_null_pool=use_null_pool,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows returned from a committed transaction are hydrated after commit.
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create the ``users`` table if it is missing (local and test databases)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("users table created / verified")


@dataclass
class Database:
    """An engine and the session factory bound to it."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    @classmethod
    def from_config(cls, config: DatabaseConfig, *, use_null_pool: bool = False) -> Database:
        engine = engine_from_config(config, use_null_pool=use_null_pool)
        return cls(engine=engine, session_factory=create_session_factory(engine))

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")
