"""Per-day block state machine.

Available -> AMBlocked / PMBlocked -> FullBlocked and back again. Transitions
are pure: every function takes the current record (``None`` means no record,
i.e. Available) and returns the record that should replace it. A result of
``None`` means the day is Available again and its record should be removed.
"""

from __future__ import annotations

from typing import Optional

from .enums import DayState, HalfDay, LegacyStatus
from .models import DayRecord, LegacyDayStatus, SlotDayStatus
from .slots import ALL_SLOTS, HALF_SLOTS, is_valid_slot


def half_blocked(record: Optional[DayRecord], half: HalfDay) -> bool:
    """A half counts as blocked when any of its slots is occupied."""

    if record is None:
        return False
    if record.is_full_day:
        return True
    if isinstance(record, LegacyDayStatus):
        return record.status is LegacyStatus(half.value)
    return any(record.slots.get(slot) for slot in HALF_SLOTS[half])


def day_state(record: Optional[DayRecord]) -> DayState:
    if record is None:
        return DayState.AVAILABLE
    if record.is_full_day:
        return DayState.FULL_BLOCKED
    am = half_blocked(record, HalfDay.AM)
    pm = half_blocked(record, HalfDay.PM)
    if am and pm:
        return DayState.FULL_BLOCKED
    if am:
        return DayState.AM_BLOCKED
    if pm:
        return DayState.PM_BLOCKED
    return DayState.AVAILABLE


def _editable(record: Optional[DayRecord]) -> SlotDayStatus:
    if record is None:
        return SlotDayStatus()
    if isinstance(record, LegacyDayStatus):
        return SlotDayStatus.from_legacy(record)
    return record.copy()


def _expand_full_day(status: SlotDayStatus) -> None:
    if status.full_day_block:
        status.full_day_block = False
        status.slots = {slot: True for slot in ALL_SLOTS}


def _finalize(status: SlotDayStatus) -> Optional[SlotDayStatus]:
    status.slots = {slot: True for slot, occupied in status.slots.items() if occupied}
    if status.full_day_block:
        status.slots = {slot: True for slot in ALL_SLOTS}
        return status
    if not status.slots:
        return None
    if all(slot in status.slots for slot in ALL_SLOTS):
        status.full_day_block = True
    return status


def block_half(
    record: Optional[DayRecord], half: HalfDay, *, event_label: Optional[str] = None
) -> Optional[SlotDayStatus]:
    status = _editable(record)
    if not status.full_day_block:
        for slot in HALF_SLOTS[half]:
            status.slots[slot] = True
    if event_label is not None:
        status.event_label = event_label
    return _finalize(status)


def unblock_half(record: Optional[DayRecord], half: HalfDay) -> Optional[DayRecord]:
    if not half_blocked(record, half):
        return record
    status = _editable(record)
    _expand_full_day(status)
    for slot in HALF_SLOTS[half]:
        status.slots.pop(slot, None)
    return _finalize(status)


def block_full_day(record: Optional[DayRecord], *, event_label: Optional[str] = None) -> SlotDayStatus:
    status = _editable(record)
    status.full_day_block = True
    if event_label is not None:
        status.event_label = event_label
    finalized = _finalize(status)
    assert finalized is not None
    return finalized


def set_slot(record: Optional[DayRecord], slot: str, occupied: bool) -> Optional[DayRecord]:
    if not is_valid_slot(slot):
        raise ValueError(f"Unknown slot label: {slot!r}")
    status = _editable(record)
    if occupied:
        status.slots[slot] = True
    else:
        _expand_full_day(status)
        status.slots.pop(slot, None)
    return _finalize(status)


__all__ = [
    "block_full_day",
    "block_half",
    "day_state",
    "half_blocked",
    "set_slot",
    "unblock_half",
]
