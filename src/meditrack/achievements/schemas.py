"""Pydantic response models for achievement endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner: str
    category: str
    milestone: int
    awarded_at: int
    description: str


class AchievementListResponse(BaseModel):
    achievements: list[AchievementResponse]
    total: int


class VerificationResponse(BaseModel):
    verified: bool = True
    achievement: AchievementResponse


class ProgressResponse(BaseModel):
    total_sessions: int
    total_duration: int
    current_streak: int
    last_active_day: int
    activity_types_seen: list[int]
    achievements_owned: list[int]


class MilestoneEntry(BaseModel):
    category: str
    milestone: int
    description: str


class MilestoneCatalogResponse(BaseModel):
    milestones: list[MilestoneEntry]
    activity_categories: dict[str, int]
