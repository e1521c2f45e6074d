"""Milestone catalog — categories, thresholds, capacity bounds and descriptions.

Descriptions are stored in a fixed-width column, so every catalog entry is
checked against ``DESCRIPTION_MAX_LENGTH`` when this module is imported.
"""

from __future__ import annotations

from enum import Enum, IntEnum

from meditrack.db.models import DESCRIPTION_MAX_LENGTH, MAX_SESSION_DURATION  # noqa: F401


class ActivityCategory(IntEnum):
    """The fixed universe of meditation session kinds."""

    MINDFULNESS = 1
    BREATHING = 2
    BODY_SCAN = 3
    LOVING_KINDNESS = 4
    VISUALIZATION = 5


class AchievementCategory(str, Enum):
    SESSION_COUNT = "session_count"
    STREAK = "streak"
    DURATION = "duration"
    VARIETY = "variety"


SESSION_COUNT_THRESHOLDS: tuple[int, ...] = (10, 50, 100, 500, 1000)
STREAK_THRESHOLDS: tuple[int, ...] = (7, 30, 100, 365)
DURATION_THRESHOLDS: tuple[int, ...] = (600, 3600, 18000, 36000, 108000)  # minutes
VARIETY_TARGET = len(ActivityCategory)

MAX_ACTIVITY_TYPES = 10
MAX_ACHIEVEMENTS_PER_USER = 100

_TEMPLATES: dict[AchievementCategory, str] = {
    AchievementCategory.SESSION_COUNT: "Completed {milestone} meditation sessions",
    AchievementCategory.STREAK: "Meditated {milestone} days in a row",
    AchievementCategory.DURATION: "Meditated for {milestone} minutes in total",
    AchievementCategory.VARIETY: "Practiced all {milestone} kinds of meditation",
}

CATALOG: dict[AchievementCategory, tuple[int, ...]] = {
    AchievementCategory.SESSION_COUNT: SESSION_COUNT_THRESHOLDS,
    AchievementCategory.STREAK: STREAK_THRESHOLDS,
    AchievementCategory.DURATION: DURATION_THRESHOLDS,
    AchievementCategory.VARIETY: (VARIETY_TARGET,),
}


def describe(category: AchievementCategory, milestone: int) -> str:
    """Human-readable description for a (category, milestone) award."""
    return _TEMPLATES[category].format(milestone=f"{milestone:,}")


def parse_activity_category(value: int) -> ActivityCategory | None:
    """Map a raw category id onto the universe, or None if it is outside it."""
    try:
        return ActivityCategory(value)
    except ValueError:
        return None


def validate_catalog(max_length: int = DESCRIPTION_MAX_LENGTH) -> None:
    """Raise ValueError if any catalog description would not fit its column."""
    for category, thresholds in CATALOG.items():
        for milestone in thresholds:
            text = describe(category, milestone)
            if len(text) > max_length:
                msg = (
                    f"Description for {category.value}/{milestone} is {len(text)} chars "
                    f"(limit {max_length})"
                )
                raise ValueError(msg)


validate_catalog()
