"""Group API endpoints — create, inspect, join, leave, share."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.auth.dependencies import get_current_principal
from meditrack.database import get_session
from meditrack.db.models import Group
from meditrack.dependencies import get_clock
from meditrack.errors import NotMember
from meditrack.groups.schemas import (
    CreateGroupRequest,
    GroupMemberResponse,
    GroupResponse,
    MembershipResponse,
    ShareAchievementRequest,
    ShareAttestationResponse,
)
from meditrack.groups.service import (
    add_member,
    create_group,
    is_member,
    list_members,
    remove_member,
    require_group,
)
from meditrack.groups.sharing import share_achievement
from meditrack.sessions.clock import Clock

router = APIRouter(prefix="/api/v1", tags=["Groups"])


async def _build_group_response(db: AsyncSession, group: Group) -> GroupResponse:
    members = await list_members(db, group.id)
    return GroupResponse(
        id=group.id,
        name=group.name,
        creator=group.creator,
        member_count=group.member_count,
        created_at=group.created_at,
        members=[GroupMemberResponse.model_validate(m) for m in members],
    )


@router.post("/groups", response_model=GroupResponse, status_code=201)
async def create_group_endpoint(
    body: CreateGroupRequest,
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Create a group. The creator becomes its first member."""
    group = await create_group(db, principal, body.name, clock.now())
    await db.commit()
    return await _build_group_response(db, group)


@router.get("/groups/{group_id}", response_model=GroupResponse)
async def get_group_endpoint(
    group_id: int,
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
):
    """Group detail with members in join order. Visible to members only."""
    group = await require_group(db, group_id)
    if not await is_member(db, principal, group_id):
        raise NotMember
    return await _build_group_response(db, group)


@router.post("/groups/{group_id}/join", response_model=MembershipResponse)
async def join_group_endpoint(
    group_id: int,
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Join a group."""
    await add_member(db, principal, group_id, clock.now())
    return MembershipResponse(group_id=group_id, user_id=principal, is_member=True)


@router.post("/groups/{group_id}/leave", response_model=MembershipResponse)
async def leave_group_endpoint(
    group_id: int,
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
):
    """Leave a group. The creator cannot leave."""
    await remove_member(db, principal, group_id)
    return MembershipResponse(group_id=group_id, user_id=principal, is_member=False)


@router.post("/groups/{group_id}/share", response_model=ShareAttestationResponse)
async def share_achievement_endpoint(
    group_id: int,
    body: ShareAchievementRequest,
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Attest that the caller owns an achievement and belongs to the group."""
    attestation = await share_achievement(db, body.achievement_id, group_id, principal, clock.now())
    return ShareAttestationResponse.model_validate(attestation)
