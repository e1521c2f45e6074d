"""Per-user aggregate persistence: get-or-default and whole-record put."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements.engine import UserAggregate
from meditrack.achievements.milestones import AchievementCategory, ActivityCategory
from meditrack.db.models import UserAggregateRow


def to_aggregate(row: UserAggregateRow | None) -> UserAggregate:
    """Convert a stored row into the engine's value type (zero state if absent)."""
    if row is None:
        return UserAggregate()
    return UserAggregate(
        total_sessions=row.total_sessions,
        total_duration=row.total_duration,
        current_streak=row.current_streak,
        last_active_day=row.last_active_day,
        activity_types_seen=frozenset(ActivityCategory(c) for c in row.activity_types_seen or []),
        achievements_owned=tuple(row.achievements_owned or []),
        milestones_awarded=frozenset(
            (AchievementCategory(c), int(m)) for c, m in row.milestones_awarded or []
        ),
    )


async def _fetch_row(
    db: AsyncSession, user_id: str, *, for_update: bool = False
) -> UserAggregateRow | None:
    stmt = select(UserAggregateRow).where(UserAggregateRow.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_or_default(db: AsyncSession, user_id: str) -> UserAggregate:
    """Return the user's aggregate, or an all-zero aggregate if none exists."""
    return to_aggregate(await _fetch_row(db, user_id))


async def get_for_update(db: AsyncSession, user_id: str) -> UserAggregate:
    """Same as get_or_default, row-locked until the transaction ends (Postgres)."""
    return to_aggregate(await _fetch_row(db, user_id, for_update=True))


async def put(db: AsyncSession, user_id: str, aggregate: UserAggregate) -> None:
    """Unconditionally overwrite the user's aggregate."""
    row = await _fetch_row(db, user_id)
    if row is None:
        row = UserAggregateRow(user_id=user_id)
        db.add(row)

    row.total_sessions = aggregate.total_sessions
    row.total_duration = aggregate.total_duration
    row.current_streak = aggregate.current_streak
    row.last_active_day = aggregate.last_active_day
    row.activity_types_seen = sorted(int(c) for c in aggregate.activity_types_seen)
    row.achievements_owned = list(aggregate.achievements_owned)
    row.milestones_awarded = sorted(
        [c.value, m] for c, m in aggregate.milestones_awarded
    )
    await db.flush()
