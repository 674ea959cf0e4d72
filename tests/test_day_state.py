from __future__ import annotations

import pytest

from freeslot.domain import (
    DayState,
    HalfDay,
    LegacyDayStatus,
    LegacyStatus,
    SlotDayStatus,
    TimePreference,
    block_full_day,
    block_half,
    day_state,
    half_blocked,
    set_slot,
    unblock_half,
)
from freeslot.domain.slots import ALL_SLOTS, HALF_SLOTS, MORNING_SLOTS, format_slot, period_center


class TestSlotWindow:
    def test_window_has_sixteen_hourly_slots(self):
        assert len(ALL_SLOTS) == 16
        assert ALL_SLOTS[0] == "06:00"
        assert ALL_SLOTS[-1] == "21:00"

    def test_halves_partition_the_window(self):
        assert set(HALF_SLOTS[HalfDay.AM]) | set(HALF_SLOTS[HalfDay.PM]) == set(ALL_SLOTS)
        assert not set(HALF_SLOTS[HalfDay.AM]) & set(HALF_SLOTS[HalfDay.PM])
        assert HALF_SLOTS[HalfDay.AM] == MORNING_SLOTS

    def test_format_slot(self):
        assert format_slot("09:00") == "9:00 AM"
        assert format_slot("12:00") == "12:00 PM"
        assert format_slot("14:00") == "2:00 PM"

    def test_period_center(self):
        assert period_center(None) == 14
        assert period_center(TimePreference.MORNING) == 9
        assert period_center(TimePreference.EVENING) == 20


class TestTransitions:
    """Every edge of the four-state day machine."""

    def test_no_record_is_available(self):
        assert day_state(None) is DayState.AVAILABLE

    def test_block_am_then_pm_is_full_then_unblock_am_is_pm(self):
        record = block_half(None, HalfDay.AM)
        assert day_state(record) is DayState.AM_BLOCKED
        record = block_half(record, HalfDay.PM)
        assert day_state(record) is DayState.FULL_BLOCKED
        assert record.full_day_block is True
        record = unblock_half(record, HalfDay.AM)
        assert day_state(record) is DayState.PM_BLOCKED

    def test_block_pm_first(self):
        record = block_half(None, HalfDay.PM)
        assert day_state(record) is DayState.PM_BLOCKED
        assert day_state(block_half(record, HalfDay.AM)) is DayState.FULL_BLOCKED

    def test_full_day_unblock_pm_leaves_am(self):
        record = block_full_day(None)
        assert day_state(unblock_half(record, HalfDay.PM)) is DayState.AM_BLOCKED

    def test_unblocking_only_blocked_half_removes_record(self):
        assert unblock_half(block_half(None, HalfDay.AM), HalfDay.AM) is None
        assert unblock_half(block_half(None, HalfDay.PM), HalfDay.PM) is None

    def test_unblocking_free_half_is_noop(self):
        record = block_half(None, HalfDay.AM, event_label="Workshop")
        assert unblock_half(record, HalfDay.PM) is record
        assert unblock_half(None, HalfDay.AM) is None

    def test_transitions_do_not_mutate_input(self):
        record = block_half(None, HalfDay.AM)
        block_half(record, HalfDay.PM)
        assert record.full_day_block is False
        assert day_state(record) is DayState.AM_BLOCKED

    def test_event_label_is_kept(self):
        record = block_half(None, HalfDay.AM, event_label="Retreat")
        record = block_half(record, HalfDay.PM)
        assert record.event_label == "Retreat"

    def test_legacy_record_is_upgraded_on_write(self):
        record = block_half(LegacyDayStatus(status=LegacyStatus.AM), HalfDay.PM)
        assert isinstance(record, SlotDayStatus)
        assert day_state(record) is DayState.FULL_BLOCKED


class TestHalfBlocked:
    def test_any_occupied_slot_blocks_the_half(self):
        record = SlotDayStatus(slots={"10:00": True})
        assert half_blocked(record, HalfDay.AM) is True
        assert half_blocked(record, HalfDay.PM) is False
        assert day_state(record) is DayState.AM_BLOCKED

    def test_legacy_statuses(self):
        assert day_state(LegacyDayStatus(status=LegacyStatus.FULL)) is DayState.FULL_BLOCKED
        assert day_state(LegacyDayStatus(status=LegacyStatus.PM)) is DayState.PM_BLOCKED


class TestSetSlot:
    def test_setting_every_slot_marks_full_day(self):
        record = None
        for slot in ALL_SLOTS:
            record = set_slot(record, slot, True)
        assert record.full_day_block is True

    def test_clearing_last_slot_removes_record(self):
        record = set_slot(None, "14:00", True)
        assert set_slot(record, "14:00", False) is None

    def test_clearing_slot_of_full_day_expands_block(self):
        record = set_slot(block_full_day(None), "06:00", False)
        assert record.full_day_block is False
        assert record.occupied_slots() == ALL_SLOTS[1:]

    def test_unknown_slot_is_rejected(self):
        with pytest.raises(ValueError):
            set_slot(None, "05:00", True)
