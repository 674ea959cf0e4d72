"""Fixed hourly slot window (06:00-22:00) and its period groupings."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from .enums import HalfDay, TimePreference

MORNING_SLOTS: Tuple[str, ...] = ("06:00", "07:00", "08:00", "09:00", "10:00", "11:00")
AFTERNOON_SLOTS: Tuple[str, ...] = ("12:00", "13:00", "14:00", "15:00", "16:00", "17:00")
EVENING_SLOTS: Tuple[str, ...] = ("18:00", "19:00", "20:00", "21:00")

ALL_SLOTS: Tuple[str, ...] = MORNING_SLOTS + AFTERNOON_SLOTS + EVENING_SLOTS
SLOT_INDEX: Dict[str, int] = {slot: index for index, slot in enumerate(ALL_SLOTS)}

HALF_SLOTS: Dict[HalfDay, Tuple[str, ...]] = {
    HalfDay.AM: MORNING_SLOTS,
    HalfDay.PM: AFTERNOON_SLOTS + EVENING_SLOTS,
}

PERIOD_SLOTS: Dict[TimePreference, Tuple[str, ...]] = {
    TimePreference.MORNING: MORNING_SLOTS,
    TimePreference.AFTERNOON: AFTERNOON_SLOTS,
    TimePreference.EVENING: EVENING_SLOTS,
    TimePreference.ANY: ALL_SLOTS,
}


def is_valid_slot(slot: object) -> bool:
    return isinstance(slot, str) and slot in SLOT_INDEX


def slot_hour(slot: str) -> int:
    return int(slot.split(":", 1)[0])


def slot_end_label(slot: str) -> str:
    return f"{slot_hour(slot) + 1:02d}:00"


def period_for_slot(slot: str) -> TimePreference:
    if slot in MORNING_SLOTS:
        return TimePreference.MORNING
    if slot in AFTERNOON_SLOTS:
        return TimePreference.AFTERNOON
    if slot in EVENING_SLOTS:
        return TimePreference.EVENING
    return TimePreference.ANY


def half_for_preference(preference: Optional[TimePreference]) -> Optional[HalfDay]:
    """Map a time-of-day preference to the half it falls in; ``any`` has none."""

    if preference is None or preference is TimePreference.ANY:
        return None
    return HalfDay.AM if preference is TimePreference.MORNING else HalfDay.PM


def period_center(preference: Optional[TimePreference]) -> float:
    slots = PERIOD_SLOTS[preference or TimePreference.ANY]
    return (slot_hour(slots[0]) + slot_hour(slots[-1]) + 1) / 2


def format_slot(slot: str) -> str:
    """'09:00' -> '9:00 AM', '14:00' -> '2:00 PM'."""

    hour = slot_hour(slot)
    suffix = "PM" if hour >= 12 else "AM"
    display = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display}:00 {suffix}"


__all__ = [
    "AFTERNOON_SLOTS",
    "ALL_SLOTS",
    "EVENING_SLOTS",
    "HALF_SLOTS",
    "MORNING_SLOTS",
    "PERIOD_SLOTS",
    "SLOT_INDEX",
    "format_slot",
    "half_for_preference",
    "is_valid_slot",
    "period_center",
    "period_for_slot",
    "slot_end_label",
    "slot_hour",
]
