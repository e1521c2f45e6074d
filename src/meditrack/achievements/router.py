"""Achievement API endpoints — catalog, progress, ownership and verification."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meditrack.achievements import aggregate_store, ledger
from meditrack.achievements.milestones import CATALOG, ActivityCategory, describe
from meditrack.achievements.schemas import (
    AchievementListResponse,
    AchievementResponse,
    MilestoneCatalogResponse,
    MilestoneEntry,
    ProgressResponse,
    VerificationResponse,
)
from meditrack.auth.dependencies import get_current_principal
from meditrack.database import get_session

router = APIRouter(prefix="/api/v1", tags=["Achievements"])


# ── Public endpoints ──


@router.get("/milestones", response_model=MilestoneCatalogResponse)
async def list_milestones():
    """Every milestone that can be awarded, in evaluation order."""
    return MilestoneCatalogResponse(
        milestones=[
            MilestoneEntry(category=category.value, milestone=m, description=describe(category, m))
            for category, thresholds in CATALOG.items()
            for m in thresholds
        ],
        activity_categories={c.name.lower(): int(c) for c in ActivityCategory},
    )


@router.get("/achievements/{achievement_id}", response_model=AchievementResponse)
async def get_achievement(achievement_id: int, db: AsyncSession = Depends(get_session)):
    """Achievement detail."""
    return AchievementResponse.model_validate(await ledger.verify(db, achievement_id))


@router.get("/achievements/{achievement_id}/verify", response_model=VerificationResponse)
async def verify_achievement(achievement_id: int, db: AsyncSession = Depends(get_session)):
    """Third-party confirmation that an achievement was awarded. Read-only."""
    achievement = await ledger.verify(db, achievement_id)
    return VerificationResponse(achievement=AchievementResponse.model_validate(achievement))


# ── Authenticated endpoints ──


@router.get("/users/me/achievements", response_model=AchievementListResponse)
async def get_my_achievements(
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
):
    """Current user's achievements in award order."""
    achievements = await ledger.list_for_owner(db, principal)
    return AchievementListResponse(
        achievements=[AchievementResponse.model_validate(a) for a in achievements],
        total=len(achievements),
    )


@router.get("/users/me/progress", response_model=ProgressResponse)
async def get_my_progress(
    principal: str = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
):
    """Current user's rolling aggregate (all zeros before the first session)."""
    agg = await aggregate_store.get_or_default(db, principal)
    return ProgressResponse(
        total_sessions=agg.total_sessions,
        total_duration=agg.total_duration,
        current_streak=agg.current_streak,
        last_active_day=agg.last_active_day,
        activity_types_seen=sorted(int(c) for c in agg.activity_types_seen),
        achievements_owned=list(agg.achievements_owned),
    )
