"""Session recording orchestration tests — transaction boundary and serialization."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements import aggregate_store, ledger
from meditrack.achievements.engine import SameDayPolicy, UserAggregate
from meditrack.achievements.milestones import AchievementCategory
from meditrack.database import get_session_factory
from meditrack.db.models import Achievement, SessionRecord
from meditrack.errors import (
    CapacityExceeded,
    InvalidCategory,
    InvalidDuration,
    SessionAlreadyRecorded,
)
from meditrack.sessions import event_store
from meditrack.sessions.service import record_session

NOW = 1_767_600_000
DAY1 = 739_000


async def _count(db: AsyncSession, model: type) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def _record_days(db: AsyncSession, user: str, days: int, start: int = 0) -> None:
    for i in range(start, start + days):
        await record_session(db, user, 30, 1, None, now=NOW + i * 86_400, today=DAY1 + i)


class TestRecordSession:
    @pytest.mark.asyncio
    async def test_first_session(self, db_session: AsyncSession):
        result = await record_session(db_session, "alice", 30, 1, "calm", now=NOW, today=DAY1)
        assert result.streak == 1
        assert result.achievements == []

        agg = await aggregate_store.get_or_default(db_session, "alice")
        assert agg.total_sessions == 1
        assert agg.total_duration == 30
        assert await event_store.exists(db_session, "alice", NOW)

    @pytest.mark.asyncio
    async def test_awards_persisted_and_owned(self, db_session: AsyncSession):
        await _record_days(db_session, "alice", 10)

        owned = await ledger.list_for_owner(db_session, "alice")
        assert [(a.category, a.milestone) for a in owned] == [("streak", 7), ("session_count", 10)]

        agg = await aggregate_store.get_or_default(db_session, "alice")
        assert agg.achievements_owned == tuple(a.id for a in owned)
        assert agg.has_award(AchievementCategory.SESSION_COUNT, 10)

    @pytest.mark.asyncio
    async def test_duplicate_timestamp_rejected_without_writes(self, db_session: AsyncSession):
        await record_session(db_session, "alice", 30, 1, None, now=NOW, today=DAY1)
        before = await aggregate_store.get_or_default(db_session, "alice")

        with pytest.raises(SessionAlreadyRecorded):
            await record_session(db_session, "alice", 45, 2, None, now=NOW, today=DAY1)

        assert await aggregate_store.get_or_default(db_session, "alice") == before
        assert await _count(db_session, SessionRecord) == 1

    @pytest.mark.asyncio
    async def test_same_timestamp_different_users(self, db_session: AsyncSession):
        await record_session(db_session, "alice", 30, 1, None, now=NOW, today=DAY1)
        await record_session(db_session, "bob", 30, 1, None, now=NOW, today=DAY1)
        assert await _count(db_session, SessionRecord) == 2

    @pytest.mark.asyncio
    async def test_invalid_input_writes_nothing(self, db_session: AsyncSession):
        with pytest.raises(InvalidDuration):
            await record_session(db_session, "alice", 0, 1, None, now=NOW, today=DAY1)
        with pytest.raises(InvalidDuration):
            await record_session(db_session, "alice", 2**64, 1, None, now=NOW, today=DAY1)
        with pytest.raises(InvalidCategory):
            await record_session(db_session, "alice", 10, 9, None, now=NOW, today=DAY1)
        assert await _count(db_session, SessionRecord) == 0
        assert await aggregate_store.get_or_default(db_session, "alice") == UserAggregate()

    @pytest.mark.asyncio
    async def test_same_day_policy_passed_through(self, db_session: AsyncSession):
        await record_session(db_session, "alice", 30, 1, None, now=NOW, today=DAY1)
        await record_session(db_session, "alice", 30, 1, None, now=NOW + 86_400, today=DAY1 + 1)

        held = await record_session(db_session, "alice", 30, 1, None, now=NOW + 86_500, today=DAY1 + 1)
        assert held.streak == 2

        reset = await record_session(
            db_session, "alice", 30, 1, None, now=NOW + 86_600, today=DAY1 + 1,
            same_day=SameDayPolicy.RESET,
        )
        assert reset.streak == 1

    @pytest.mark.asyncio
    async def test_capacity_error_rolls_back(self, db_session: AsyncSession):
        full = UserAggregate(
            total_sessions=9,
            current_streak=1,
            last_active_day=DAY1,
            achievements_owned=tuple(range(1000, 1100)),
        )
        await aggregate_store.put(db_session, "alice", full)
        await db_session.commit()

        with pytest.raises(CapacityExceeded):
            await record_session(db_session, "alice", 30, 1, None, now=NOW, today=DAY1 + 5)

        assert await _count(db_session, Achievement) == 0
        assert await _count(db_session, SessionRecord) == 0
        assert (await aggregate_store.get_or_default(db_session, "alice")).total_sessions == 9


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_racing_tenth_session_awards_once(self, db_session: AsyncSession):
        """Two concurrent calls both arriving at session #10 yield one award."""
        await _record_days(db_session, "alice", 9)
        factory = get_session_factory()

        async def submit(ts: int) -> int:
            async with factory() as db:
                result = await record_session(db, "alice", 30, 1, None, now=ts, today=DAY1 + 9)
                return len(result.achievements)

        awarded = await asyncio.gather(submit(NOW + 20 * 86_400), submit(NOW + 20 * 86_400 + 1))
        assert sorted(awarded) == [0, 1]

        async with factory() as db:
            agg = await aggregate_store.get_or_default(db, "alice")
            count_awards = [
                a for a in await ledger.list_for_owner(db, "alice")
                if a.category == AchievementCategory.SESSION_COUNT.value
            ]
        assert agg.total_sessions == 11
        assert len(count_awards) == 1

    @pytest.mark.asyncio
    async def test_racing_duplicate_timestamp(self, db_session: AsyncSession):
        factory = get_session_factory()

        async def submit() -> str:
            async with factory() as db:
                try:
                    await record_session(db, "alice", 30, 1, None, now=NOW, today=DAY1)
                except SessionAlreadyRecorded:
                    return "duplicate"
                return "ok"

        outcomes = await asyncio.gather(submit(), submit())
        assert sorted(outcomes) == ["duplicate", "ok"]

        async with factory() as db:
            assert (await aggregate_store.get_or_default(db, "alice")).total_sessions == 1
