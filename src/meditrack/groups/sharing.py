"""Achievement sharing — a read-only capability check that yields an attestation."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements import ledger
from meditrack.errors import AchievementNotFound, NotAuthorized, NotMember
from meditrack.groups.service import is_member, require_group


@dataclass(frozen=True)
class ShareAttestation:
    achievement_id: int
    group_id: int
    shared_by: str
    shared_at: int
    category: str
    milestone: int


async def share_achievement(
    db: AsyncSession,
    achievement_id: int,
    group_id: int,
    user_id: str,
    now: int,
) -> ShareAttestation:
    """Attest that ``user_id`` may show ``achievement_id`` to ``group_id``.

    Checks, in order: the achievement exists, the user owns it, the group
    exists, the user is a member. Nothing is written.
    """
    achievement = await ledger.get(db, achievement_id)
    if achievement is None:
        msg = f"Achievement {achievement_id} not found"
        raise AchievementNotFound(msg)
    if achievement.owner != user_id:
        msg = "You can only share your own achievements"
        raise NotAuthorized(msg)

    await require_group(db, group_id)
    if not await is_member(db, user_id, group_id):
        raise NotMember

    return ShareAttestation(
        achievement_id=achievement.id,
        group_id=group_id,
        shared_by=user_id,
        shared_at=now,
        category=achievement.category,
        milestone=achievement.milestone,
    )
