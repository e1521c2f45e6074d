"""Append-only achievement ledger.

Ids come from the table's auto-increment sequence: strictly increasing across
all users and never reused. Records are never updated or deleted.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements.milestones import AchievementCategory
from meditrack.db.models import Achievement
from meditrack.errors import AchievementNotFound

logger = logging.getLogger(__name__)


async def create(
    db: AsyncSession,
    owner: str,
    category: AchievementCategory,
    milestone: int,
    description: str,
    awarded_at: int,
) -> Achievement:
    """Append an achievement and return it with its newly assigned id.

    A duplicate (owner, category, milestone) raises IntegrityError on flush;
    the caller owns the transaction and decides how to surface it.
    """
    achievement = Achievement(
        owner=owner,
        category=category.value,
        milestone=milestone,
        description=description,
        awarded_at=awarded_at,
    )
    db.add(achievement)
    await db.flush()
    logger.info(
        "Achievement %d awarded: %s/%d to %s", achievement.id, category.value, milestone, owner
    )
    return achievement


async def get(db: AsyncSession, achievement_id: int) -> Achievement | None:
    """Fetch an achievement by id."""
    result = await db.execute(select(Achievement).where(Achievement.id == achievement_id))
    return result.scalar_one_or_none()


async def verify(db: AsyncSession, achievement_id: int) -> Achievement:
    """Return the full record for third-party confirmation. Read-only."""
    achievement = await get(db, achievement_id)
    if achievement is None:
        msg = f"Achievement {achievement_id} not found"
        raise AchievementNotFound(msg)
    return achievement


async def list_for_owner(db: AsyncSession, owner: str) -> list[Achievement]:
    """All achievements owned by ``owner`` in award order."""
    result = await db.execute(
        select(Achievement).where(Achievement.owner == owner).order_by(Achievement.id.asc())
    )
    return list(result.scalars().all())
