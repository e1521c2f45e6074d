"""Wall clock and calendar-day derivation for streak continuity."""

from __future__ import annotations

import time
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


def _resolve_tz(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class Clock:
    """Unix-second timestamps and day indexes in a fixed time zone.

    Day indexes are proleptic Gregorian ordinals (0001-01-01 is day 1), so
    consecutive calendar days differ by exactly 1 and no real timestamp maps
    to 0, which the aggregate reserves for "never active".
    """

    def __init__(self, tz_name: str = "UTC") -> None:
        self.tz = _resolve_tz(tz_name)

    def now(self) -> int:
        return int(time.time())

    def day_index(self, timestamp: int) -> int:
        return datetime.fromtimestamp(timestamp, tz=self.tz).date().toordinal()

    def today(self) -> int:
        return self.day_index(self.now())
