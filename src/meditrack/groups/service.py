"""Group membership business logic.

Rules:
- The creator becomes the first member and can never leave
- No duplicate membership
- Max 100 members per group
"""

from __future__ import annotations

import asyncio
import logging
from weakref import WeakValueDictionary

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.db.models import Group, GroupMember
from meditrack.errors import (
    AlreadyMember,
    CapacityExceeded,
    GroupNotFound,
    MeditrackError,
    NotAuthorized,
    NotMember,
)

logger = logging.getLogger(__name__)

MAX_GROUP_MEMBERS = 100

_group_locks: WeakValueDictionary[int, asyncio.Lock] = WeakValueDictionary()


def group_lock(group_id: int) -> asyncio.Lock:
    """The lock serializing membership changes for one group."""
    lock = _group_locks.get(group_id)
    if lock is None:
        lock = asyncio.Lock()
        _group_locks[group_id] = lock
    return lock


async def get_group(db: AsyncSession, group_id: int) -> Group | None:
    """Get a group by ID."""
    result = await db.execute(select(Group).where(Group.id == group_id))
    return result.scalar_one_or_none()


async def _lock_group(db: AsyncSession, group_id: int) -> Group:
    """Fetch the group row locked until the transaction ends (Postgres), with fresh counts."""
    result = await db.execute(
        select(Group)
        .where(Group.id == group_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    group = result.scalar_one_or_none()
    if group is None:
        msg = f"Group {group_id} not found"
        raise GroupNotFound(msg)
    return group


async def require_group(db: AsyncSession, group_id: int) -> Group:
    group = await get_group(db, group_id)
    if group is None:
        msg = f"Group {group_id} not found"
        raise GroupNotFound(msg)
    return group


async def group_exists(db: AsyncSession, group_id: int) -> bool:
    return await get_group(db, group_id) is not None


async def _get_membership(db: AsyncSession, user_id: str, group_id: int) -> GroupMember | None:
    result = await db.execute(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def is_member(db: AsyncSession, user_id: str, group_id: int) -> bool:
    """Check whether ``user_id`` belongs to the group."""
    return await _get_membership(db, user_id, group_id) is not None


async def create_group(db: AsyncSession, creator: str, name: str, now: int) -> Group:
    """Create a new group. The creator becomes its first member."""
    group = Group(name=name, creator=creator, member_count=1, created_at=now)
    db.add(group)
    await db.flush()

    db.add(GroupMember(group_id=group.id, user_id=creator, joined_at=now))
    await db.flush()

    logger.info("Group created: %s (id=%d, creator=%s)", name, group.id, creator)
    return group


async def add_member(db: AsyncSession, user_id: str, group_id: int, now: int) -> GroupMember:
    """Join a group and commit.

    Joins to one group are serialized in-process by a per-group lock and
    across processes by locking the group row; UNIQUE(group_id, user_id)
    catches anything else.
    """
    async with group_lock(group_id):
        try:
            group = await _lock_group(db, group_id)

            if await is_member(db, user_id, group_id):
                raise AlreadyMember

            if group.member_count >= MAX_GROUP_MEMBERS:
                msg = f"This group is full ({MAX_GROUP_MEMBERS} members maximum)"
                raise CapacityExceeded(msg)

            member = GroupMember(group_id=group_id, user_id=user_id, joined_at=now)
            db.add(member)
            group.member_count += 1
            await db.flush()
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Concurrent join of group %d by %s rolled back", group_id, user_id)
            raise AlreadyMember from exc
        except MeditrackError:
            await db.rollback()
            raise

    logger.info("User %s joined group %d", user_id, group_id)
    return member


async def remove_member(db: AsyncSession, user_id: str, group_id: int) -> None:
    """Leave a group and commit. The creator cannot leave their own group."""
    async with group_lock(group_id):
        try:
            group = await _lock_group(db, group_id)

            membership = await _get_membership(db, user_id, group_id)
            if membership is None:
                raise NotMember

            if group.creator == user_id:
                msg = "The group creator cannot leave the group"
                raise NotAuthorized(msg)

            await db.delete(membership)
            group.member_count -= 1
            await db.flush()
            await db.commit()
        except MeditrackError:
            await db.rollback()
            raise

    logger.info("User %s left group %d", user_id, group_id)


async def list_members(db: AsyncSession, group_id: int) -> list[GroupMember]:
    """Members of a group in join order."""
    await require_group(db, group_id)
    result = await db.execute(
        select(GroupMember)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.id.asc())
    )
    return list(result.scalars().all())
