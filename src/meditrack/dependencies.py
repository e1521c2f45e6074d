"""Shared FastAPI dependencies."""

from functools import lru_cache

from meditrack.achievements.engine import SameDayPolicy
from meditrack.config import get_settings
from meditrack.sessions.clock import Clock


@lru_cache
def _default_clock() -> Clock:
    return Clock(get_settings().day_boundary_timezone)


def get_clock() -> Clock:
    """The clock used for session timestamps (overridden in tests)."""
    return _default_clock()


def get_same_day_policy() -> SameDayPolicy:
    """Configured streak behavior for a second session on the same day."""
    return SameDayPolicy(get_settings().same_day_streak_policy)
