"""Session recording — the transaction boundary around the evaluation engine.

Per user, "check duplicate → write event → read aggregate → evaluate → write
aggregate + append achievements" runs as one unit:

- an in-process ``asyncio.Lock`` per user serializes concurrent requests;
- the aggregate row is read ``FOR UPDATE`` so other processes queue behind it;
- unique constraints on session and achievement keys catch anything else, and
  the whole transaction is rolled back.

Different users never contend.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from weakref import WeakValueDictionary

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements import aggregate_store, ledger
from meditrack.achievements.engine import (
    SameDayPolicy,
    SessionEvent,
    apply_session,
    validate_session,
)
from meditrack.db.models import Achievement
from meditrack.errors import ConcurrentUpdate, MeditrackError, SessionAlreadyRecorded
from meditrack.sessions import event_store

logger = logging.getLogger(__name__)

_user_locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()


def user_lock(user_id: str) -> asyncio.Lock:
    """The lock serializing session recording for one user."""
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


@dataclass(frozen=True)
class SessionRecorded:
    timestamp: int
    duration: int
    category: int
    streak: int
    achievements: list[Achievement] = field(default_factory=list)


async def record_session(
    db: AsyncSession,
    user_id: str,
    duration: int,
    category: int,
    notes: str | None,
    now: int,
    today: int,
    *,
    same_day: SameDayPolicy = SameDayPolicy.HOLD,
) -> SessionRecorded:
    """Record one session and award any milestones it completes.

    Raises InvalidDuration, InvalidCategory, SessionAlreadyRecorded,
    CapacityExceeded or ConcurrentUpdate. Nothing is written on failure.
    """
    parsed = validate_session(duration, category)
    event = SessionEvent(
        user=user_id, timestamp=now, duration=duration, category=int(parsed), notes=notes
    )

    async with user_lock(user_id):
        try:
            if await event_store.exists(db, user_id, now):
                raise SessionAlreadyRecorded
            try:
                await event_store.put(db, event, today)
            except IntegrityError as exc:
                raise SessionAlreadyRecorded from exc

            before = await aggregate_store.get_for_update(db, user_id)
            after, awards = apply_session(before, event, now, today, same_day=same_day)

            achievements: list[Achievement] = []
            for award in awards:
                achievement = await ledger.create(
                    db,
                    owner=user_id,
                    category=award.category,
                    milestone=award.milestone,
                    description=award.description,
                    awarded_at=award.awarded_at,
                )
                after = after.with_achievement(achievement.id)
                achievements.append(achievement)

            await aggregate_store.put(db, user_id, after)
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Concurrent session write for %s rolled back", user_id)
            raise ConcurrentUpdate from exc
        except MeditrackError:
            await db.rollback()
            raise

    logger.info(
        "Session recorded for %s: %d min, category %d, streak %d, %d new achievement(s)",
        user_id, duration, event.category, after.current_streak, len(achievements),
    )
    return SessionRecorded(
        timestamp=now,
        duration=duration,
        category=event.category,
        streak=after.current_streak,
        achievements=achievements,
    )
