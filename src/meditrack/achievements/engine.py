"""Achievement evaluation engine.

``apply_session`` is a pure state transition: it takes the user's aggregate as
it was before a session and the session itself, and returns the updated
aggregate plus the achievements the session newly qualifies for. It does no
I/O and holds no state, so the caller decides the transaction boundary:
fetch the aggregate fresh, call the engine, persist the result and the awards
together.

Rules, applied in order on every call:

1. Streak — continues when the previous active day is yesterday (or the user
   was never active), resets to 1 after a gap. A second session on the same
   day follows ``SameDayPolicy``.
2. Session count and total duration grow by one session.
3. The session's category joins the set of categories seen.
4. Four independent milestone scans run against the updated aggregate and
   each contributes at most one award:
   - session count: exact match against ``SESSION_COUNT_THRESHOLDS``
   - streak: exact match against ``STREAK_THRESHOLDS``
   - duration: highest threshold in ``DURATION_THRESHOLDS`` reached so far
   - variety: every category seen at least once
   A candidate whose (category, milestone) key is already awarded is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from meditrack.achievements.milestones import (
    DURATION_THRESHOLDS,
    MAX_ACHIEVEMENTS_PER_USER,
    MAX_ACTIVITY_TYPES,
    MAX_SESSION_DURATION,
    SESSION_COUNT_THRESHOLDS,
    STREAK_THRESHOLDS,
    VARIETY_TARGET,
    AchievementCategory,
    ActivityCategory,
    describe,
    parse_activity_category,
)
from meditrack.errors import CapacityExceeded, InvalidCategory, InvalidDuration

MilestoneKey = tuple[AchievementCategory, int]


class SameDayPolicy(str, Enum):
    """What a second session on an already-active day does to the streak."""

    HOLD = "hold"  # streak unchanged
    RESET = "reset"  # literal rule: yesterday != last active day, so restart at 1


@dataclass(frozen=True)
class UserAggregate:
    """Rolling per-user summary of all recorded sessions."""

    total_sessions: int = 0
    total_duration: int = 0
    current_streak: int = 0
    last_active_day: int = 0
    activity_types_seen: frozenset[ActivityCategory] = field(default_factory=frozenset)
    achievements_owned: tuple[int, ...] = ()
    milestones_awarded: frozenset[MilestoneKey] = field(default_factory=frozenset)

    def has_award(self, category: AchievementCategory, milestone: int) -> bool:
        return (category, milestone) in self.milestones_awarded

    def has_category(self, category: AchievementCategory) -> bool:
        return any(c == category for c, _ in self.milestones_awarded)

    def with_achievement(self, achievement_id: int) -> UserAggregate:
        """Append a persisted achievement id in award order."""
        if len(self.achievements_owned) >= MAX_ACHIEVEMENTS_PER_USER:
            msg = f"User already owns {MAX_ACHIEVEMENTS_PER_USER} achievements"
            raise CapacityExceeded(msg)
        return replace(self, achievements_owned=(*self.achievements_owned, achievement_id))


@dataclass(frozen=True)
class SessionEvent:
    user: str
    timestamp: int
    duration: int
    category: int
    notes: str | None = None


@dataclass(frozen=True)
class AchievementAward:
    """An award decided by the engine, not yet assigned a ledger id."""

    category: AchievementCategory
    milestone: int
    description: str
    awarded_at: int

    @property
    def key(self) -> MilestoneKey:
        return (self.category, self.milestone)


def validate_session(duration: int, category: int) -> ActivityCategory:
    """Check duration and category. Returns the parsed category."""
    if isinstance(duration, bool) or duration <= 0:
        raise InvalidDuration
    if duration > MAX_SESSION_DURATION:
        msg = f"Session duration cannot exceed {MAX_SESSION_DURATION} minutes"
        raise InvalidDuration(msg)
    parsed = parse_activity_category(category)
    if parsed is None:
        msg = f"Unknown session category: {category}"
        raise InvalidCategory(msg)
    return parsed


def next_streak(
    aggregate: UserAggregate,
    today: int,
    same_day: SameDayPolicy = SameDayPolicy.HOLD,
) -> int:
    """Streak value after a session on day ``today``."""
    last = aggregate.last_active_day
    if last == 0 or last + 1 == today:
        return aggregate.current_streak + 1
    if last == today and same_day is SameDayPolicy.HOLD:
        return aggregate.current_streak
    return 1


def _add_category(
    seen: frozenset[ActivityCategory], category: ActivityCategory
) -> frozenset[ActivityCategory]:
    if category in seen:
        return seen
    if len(seen) >= MAX_ACTIVITY_TYPES:
        msg = f"Activity type set is full ({MAX_ACTIVITY_TYPES})"
        raise CapacityExceeded(msg)
    return seen | {category}


def _session_count_candidate(agg: UserAggregate) -> int | None:
    return agg.total_sessions if agg.total_sessions in SESSION_COUNT_THRESHOLDS else None


def _streak_candidate(agg: UserAggregate) -> int | None:
    return agg.current_streak if agg.current_streak in STREAK_THRESHOLDS else None


def _duration_candidate(agg: UserAggregate) -> int | None:
    reached = [t for t in DURATION_THRESHOLDS if t <= agg.total_duration]
    return max(reached) if reached else None


def _variety_candidate(agg: UserAggregate) -> int | None:
    if agg.has_category(AchievementCategory.VARIETY):
        return None
    return VARIETY_TARGET if len(agg.activity_types_seen) >= VARIETY_TARGET else None


# Scan order is the order awards are returned (and later assigned ids) in.
_SCANS = (
    (AchievementCategory.SESSION_COUNT, _session_count_candidate),
    (AchievementCategory.STREAK, _streak_candidate),
    (AchievementCategory.DURATION, _duration_candidate),
    (AchievementCategory.VARIETY, _variety_candidate),
)


def scan_milestones(aggregate: UserAggregate, now: int) -> list[AchievementAward]:
    """Milestones the (already updated) aggregate newly qualifies for."""
    awards: list[AchievementAward] = []
    for category, candidate in _SCANS:
        milestone = candidate(aggregate)
        if milestone is None or aggregate.has_award(category, milestone):
            continue
        awards.append(AchievementAward(
            category=category,
            milestone=milestone,
            description=describe(category, milestone),
            awarded_at=now,
        ))
    return awards


def apply_session(
    aggregate: UserAggregate,
    event: SessionEvent,
    now: int,
    today: int,
    *,
    same_day: SameDayPolicy = SameDayPolicy.HOLD,
) -> tuple[UserAggregate, list[AchievementAward]]:
    """Fold one session into the aggregate and decide new awards.

    Raises InvalidDuration / InvalidCategory for malformed events and
    CapacityExceeded if a bounded set would overflow. The returned aggregate
    already carries the new awards' milestone keys; their ledger ids are
    appended by the caller via ``UserAggregate.with_achievement``.
    """
    category = validate_session(event.duration, event.category)

    updated = replace(
        aggregate,
        current_streak=next_streak(aggregate, today, same_day),
        last_active_day=today,
        total_sessions=aggregate.total_sessions + 1,
        total_duration=aggregate.total_duration + event.duration,
        activity_types_seen=_add_category(aggregate.activity_types_seen, category),
    )

    awards = scan_milestones(updated, now)
    if awards:
        updated = replace(
            updated,
            milestones_awarded=updated.milestones_awarded | {a.key for a in awards},
        )
    return updated, awards
