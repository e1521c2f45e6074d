"""Achievement ledger and aggregate store tests."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements import aggregate_store, ledger
from meditrack.achievements.engine import UserAggregate
from meditrack.achievements.milestones import AchievementCategory, ActivityCategory
from meditrack.errors import AchievementNotFound


class TestLedger:
    @pytest.mark.asyncio
    async def test_ids_strictly_increase_across_owners(self, db_session: AsyncSession):
        a = await ledger.create(db_session, "alice", AchievementCategory.STREAK, 7, "Meditated 7 days in a row", 100)
        b = await ledger.create(db_session, "bob", AchievementCategory.STREAK, 7, "Meditated 7 days in a row", 101)
        c = await ledger.create(db_session, "alice", AchievementCategory.VARIETY, 5, "Practiced all 5 kinds", 102)
        await db_session.commit()
        assert a.id < b.id < c.id

    @pytest.mark.asyncio
    async def test_verify_returns_full_record(self, db_session: AsyncSession):
        created = await ledger.create(db_session, "alice", AchievementCategory.DURATION, 600, "600 minutes", 42)
        await db_session.commit()

        found = await ledger.verify(db_session, created.id)
        assert found.owner == "alice"
        assert found.category == "duration"
        assert found.milestone == 600
        assert found.awarded_at == 42
        assert found.description == "600 minutes"

    @pytest.mark.asyncio
    async def test_verify_unknown_id(self, db_session: AsyncSession):
        with pytest.raises(AchievementNotFound):
            await ledger.verify(db_session, 12345)

    @pytest.mark.asyncio
    async def test_get_unknown_id_is_none(self, db_session: AsyncSession):
        assert await ledger.get(db_session, 1) is None

    @pytest.mark.asyncio
    async def test_duplicate_owner_milestone_rejected(self, db_session: AsyncSession):
        await ledger.create(db_session, "alice", AchievementCategory.STREAK, 7, "x", 1)
        with pytest.raises(IntegrityError):
            await ledger.create(db_session, "alice", AchievementCategory.STREAK, 7, "x", 2)
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_list_for_owner_in_award_order(self, db_session: AsyncSession):
        await ledger.create(db_session, "alice", AchievementCategory.STREAK, 7, "x", 1)
        await ledger.create(db_session, "bob", AchievementCategory.STREAK, 7, "x", 2)
        await ledger.create(db_session, "alice", AchievementCategory.SESSION_COUNT, 10, "y", 3)
        await db_session.commit()

        owned = await ledger.list_for_owner(db_session, "alice")
        assert [(a.category, a.milestone) for a in owned] == [("streak", 7), ("session_count", 10)]


class TestAggregateStore:
    @pytest.mark.asyncio
    async def test_absent_user_gets_zero_state(self, db_session: AsyncSession):
        assert await aggregate_store.get_or_default(db_session, "nobody") == UserAggregate()

    @pytest.mark.asyncio
    async def test_put_then_get(self, db_session: AsyncSession):
        agg = UserAggregate(
            total_sessions=12,
            total_duration=640,
            current_streak=3,
            last_active_day=739_000,
            activity_types_seen=frozenset({ActivityCategory.BREATHING, ActivityCategory.BODY_SCAN}),
            achievements_owned=(4, 9),
            milestones_awarded=frozenset({
                (AchievementCategory.SESSION_COUNT, 10),
                (AchievementCategory.DURATION, 600),
            }),
        )
        await aggregate_store.put(db_session, "alice", agg)
        await db_session.commit()

        assert await aggregate_store.get_or_default(db_session, "alice") == agg
        assert await aggregate_store.get_for_update(db_session, "alice") == agg

    @pytest.mark.asyncio
    async def test_put_overwrites(self, db_session: AsyncSession):
        await aggregate_store.put(db_session, "alice", UserAggregate(total_sessions=1))
        await aggregate_store.put(db_session, "alice", UserAggregate(total_sessions=2, current_streak=2))
        await db_session.commit()

        agg = await aggregate_store.get_or_default(db_session, "alice")
        assert agg.total_sessions == 2
        assert agg.current_streak == 2
