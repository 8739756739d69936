"""SQLAlchemy ORM models for the user accounts database.

Rows are never hard-deleted: ``disabled`` marks a soft-deleted user and
``version`` carries the optimistic concurrency counter.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    false,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)


# ---------------------------------------------------------------------------
# Declarative base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# UserRecord
# ---------------------------------------------------------------------------

class UserRecord(Base):
    """Persisted user account.

    Maps from :class:`user_accounts.domain.users.User`.  Every successful
    update bumps ``version`` by one and refreshes ``updated_at``.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    nickname: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    disabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false(),
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("version >= 0", name="ck_users_version_non_negative"),
        Index("ix_users_country", "country"),
        Index("ix_users_disabled", "disabled"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserRecord(id={self.id!r}, nickname={self.nickname!r}, "
            f"version={self.version!r}, disabled={self.disabled!r})>"
        )
