"""ORM models for sessions, aggregates, achievements and groups.

Tables are created by the Alembic baseline migration; the same metadata is
used directly by the test suite.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from meditrack.db.base import Base

# Plain JSON on SQLite, JSONB on Postgres.
JSONType = JSON().with_variant(JSONB(), "postgresql")

PRINCIPAL_LENGTH = 128
DESCRIPTION_MAX_LENGTH = 128
NOTES_MAX_LENGTH = 280
GROUP_NAME_MAX_LENGTH = 64
MAX_SESSION_DURATION = 24 * 60  # minutes
ACTIVITY_CATEGORY_COUNT = 5


# ---------------------------------------------------------------------------
# Sessions (raw event store)
# ---------------------------------------------------------------------------


class SessionRecord(Base):
    """Raw meditation session — UNIQUE(user_id, timestamp) rejects resubmission."""

    __tablename__ = "session_records"
    __table_args__ = (
        UniqueConstraint("user_id", "timestamp", name="session_records_user_id_timestamp_key"),
        CheckConstraint(
            f"duration BETWEEN 1 AND {MAX_SESSION_DURATION}", name="session_records_duration_check"
        ),
        CheckConstraint(
            f"category BETWEEN 1 AND {ACTIVITY_CATEGORY_COUNT}", name="session_records_category_check"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), nullable=False, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(NOTES_MAX_LENGTH), nullable=True)
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Per-user rolling aggregate
# ---------------------------------------------------------------------------


class UserAggregateRow(Base):
    """Denormalized per-user summary — single row per user, O(1) reads."""

    __tablename__ = "user_aggregates"

    user_id: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), primary_key=True)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_duration: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_active_day: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    activity_types_seen: Mapped[list[int]] = mapped_column(JSONType, nullable=False, default=list)
    achievements_owned: Mapped[list[int]] = mapped_column(JSONType, nullable=False, default=list)
    milestones_awarded: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


# ---------------------------------------------------------------------------
# Achievement ledger
# ---------------------------------------------------------------------------


class Achievement(Base):
    """Append-only award ledger — UNIQUE(owner, category, milestone) prevents duplicates."""

    __tablename__ = "achievements"
    __table_args__ = (
        UniqueConstraint("owner", "category", "milestone", name="achievements_owner_category_milestone_key"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    milestone: Mapped[int] = mapped_column(Integer, nullable=False)
    awarded_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(String(DESCRIPTION_MAX_LENGTH), nullable=False)


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


class Group(Base):
    """Sharing group. The creator is always a member and can never leave."""

    __tablename__ = "groups"
    __table_args__ = {"sqlite_autoincrement": True}  # noqa: RUF012

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(GROUP_NAME_MAX_LENGTH), nullable=False)
    creator: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), nullable=False)
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class GroupMember(Base):
    """Group membership — UNIQUE(group_id, user_id)."""

    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="group_members_group_user_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), nullable=False, index=True)
    joined_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
