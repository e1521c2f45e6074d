"""Raw session records keyed by (user, timestamp)."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements.engine import SessionEvent
from meditrack.db.models import SessionRecord


async def exists(db: AsyncSession, user_id: str, timestamp: int) -> bool:
    """Check whether a session is already recorded for this user at this instant."""
    result = await db.execute(
        select(SessionRecord.id).where(
            SessionRecord.user_id == user_id,
            SessionRecord.timestamp == timestamp,
        )
    )
    return result.scalar_one_or_none() is not None


async def put(db: AsyncSession, event: SessionEvent, day_index: int) -> SessionRecord:
    """Insert the raw event. A duplicate key raises IntegrityError on flush."""
    record = SessionRecord(
        user_id=event.user,
        timestamp=event.timestamp,
        duration=event.duration,
        category=event.category,
        notes=event.notes,
        day_index=day_index,
    )
    db.add(record)
    await db.flush()
    return record


async def list_for_user(
    db: AsyncSession,
    user_id: str,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[SessionRecord], int]:
    """Paginated session history, newest first."""
    total_result = await db.execute(
        select(func.count()).select_from(SessionRecord).where(SessionRecord.user_id == user_id)
    )
    total = total_result.scalar_one()

    offset = (page - 1) * per_page
    result = await db.execute(
        select(SessionRecord)
        .where(SessionRecord.user_id == user_id)
        .order_by(SessionRecord.timestamp.desc())
        .offset(offset)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
