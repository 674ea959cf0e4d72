from __future__ import annotations

from enum import Enum


class SchemaVersion(int, Enum):
    V1 = 1
    V2 = 2


class LegacyStatus(str, Enum):
    FULL = "full"
    AM = "am"
    PM = "pm"


class HalfDay(str, Enum):
    AM = "am"
    PM = "pm"


class DayState(str, Enum):
    AVAILABLE = "available"
    AM_BLOCKED = "am_blocked"
    PM_BLOCKED = "pm_blocked"
    FULL_BLOCKED = "full_blocked"


class QueryIntent(str, Enum):
    FIND_DAYS = "find_days"
    FIND_SLOTS = "find_slots"
    SUGGEST_TIMES = "suggest_times"


class TimePreference(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


class SlotDuration(str, Enum):
    ONE_HOUR = "1hour"
    HALF_DAY = "half-day"
    FULL_DAY = "full-day"

    @property
    def hours(self) -> int:
        return _DURATION_HOURS[self]


_DURATION_HOURS = {
    SlotDuration.ONE_HOUR: 1,
    SlotDuration.HALF_DAY: 6,
    SlotDuration.FULL_DAY: 16,
}
