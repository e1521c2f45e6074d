"""Session recording and history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements.engine import SameDayPolicy
from meditrack.achievements.schemas import AchievementResponse
from meditrack.auth.dependencies import get_current_principal
from meditrack.database import get_session
from meditrack.dependencies import get_clock, get_same_day_policy
from meditrack.sessions import event_store
from meditrack.sessions.clock import Clock
from meditrack.sessions.schemas import (
    RecordSessionRequest,
    RecordSessionResponse,
    SessionEntry,
    SessionHistoryResponse,
)
from meditrack.sessions.service import record_session

router = APIRouter(prefix="/api/v1", tags=["Sessions"])


@router.post("/sessions", response_model=RecordSessionResponse, status_code=201)
async def record_session_endpoint(
    body: RecordSessionRequest,
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    same_day: SameDayPolicy = Depends(get_same_day_policy),
):
    """Record a session at the current instant and evaluate achievements."""
    now = clock.now()
    result = await record_session(
        db,
        principal,
        body.duration,
        body.category,
        body.notes,
        now=now,
        today=clock.day_index(now),
        same_day=same_day,
    )
    return RecordSessionResponse(
        timestamp=result.timestamp,
        duration=result.duration,
        category=result.category,
        streak=result.streak,
        achievements=[AchievementResponse.model_validate(a) for a in result.achievements],
    )


@router.get("/users/me/sessions", response_model=SessionHistoryResponse)
async def get_session_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
):
    """Session history (paginated, newest first)."""
    records, total = await event_store.list_for_user(db, principal, page, per_page)
    return SessionHistoryResponse(
        sessions=[SessionEntry.model_validate(r) for r in records],
        total=total,
        page=page,
        per_page=per_page,
    )
