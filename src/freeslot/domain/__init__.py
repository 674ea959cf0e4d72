"""Day-status model: slot window, versioned records and the per-day state machine."""

from __future__ import annotations

from .day_state import block_full_day, block_half, day_state, half_blocked, set_slot, unblock_half
from .enums import (
    DayState,
    HalfDay,
    LegacyStatus,
    QueryIntent,
    SchemaVersion,
    SlotDuration,
    TimePreference,
)
from .models import (
    AvailabilityData,
    DayRecord,
    LegacyDayStatus,
    OwnerProfile,
    SlotDayStatus,
    is_valid_date_key,
    own_items,
)

__all__ = [
    "AvailabilityData",
    "DayRecord",
    "DayState",
    "HalfDay",
    "LegacyDayStatus",
    "LegacyStatus",
    "OwnerProfile",
    "QueryIntent",
    "SchemaVersion",
    "SlotDayStatus",
    "SlotDuration",
    "TimePreference",
    "block_full_day",
    "block_half",
    "day_state",
    "half_blocked",
    "is_valid_date_key",
    "own_items",
    "set_slot",
    "unblock_half",
]
