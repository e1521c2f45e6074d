"""Pydantic schemas for group endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from meditrack.db.models import GROUP_NAME_MAX_LENGTH


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=GROUP_NAME_MAX_LENGTH)


class ShareAchievementRequest(BaseModel):
    achievement_id: int


class GroupMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    joined_at: int


class GroupResponse(BaseModel):
    id: int
    name: str
    creator: str
    member_count: int
    created_at: int
    members: list[GroupMemberResponse] = []


class MembershipResponse(BaseModel):
    group_id: int
    user_id: str
    is_member: bool


class ShareAttestationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    achievement_id: int
    group_id: int
    shared_by: str
    shared_at: int
    category: str
    milestone: int
