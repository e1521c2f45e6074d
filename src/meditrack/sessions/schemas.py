"""Pydantic schemas for session endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from meditrack.achievements.schemas import AchievementResponse
from meditrack.db.models import NOTES_MAX_LENGTH


class RecordSessionRequest(BaseModel):
    # Range checks happen in the domain layer so callers get invalid_duration /
    # invalid_category codes rather than a generic validation error.
    duration: int
    category: int
    notes: str | None = Field(None, max_length=NOTES_MAX_LENGTH)


class RecordSessionResponse(BaseModel):
    timestamp: int
    duration: int
    category: int
    streak: int
    achievements: list[AchievementResponse] = []


class SessionEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: int
    duration: int
    category: int
    notes: str | None = None
    day_index: int


class SessionHistoryResponse(BaseModel):
    sessions: list[SessionEntry]
    total: int
    page: int
    per_page: int
