from __future__ import annotations

from datetime import date

import pytest

from freeslot.domain import (
    AvailabilityData,
    DayState,
    LegacyDayStatus,
    LegacyStatus,
    QueryIntent,
    SlotDayStatus,
)
from freeslot.domain.slots import ALL_SLOTS, AFTERNOON_SLOTS
from freeslot.errors import ValidationError
from freeslot.query import AvailabilityQuery, AvailabilityQueryEngine, validate_query
from freeslot.query.engine import iter_dates


class CountingSlots(dict):
    """Slot map that records every access to its contents."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.accesses = 0

    def get(self, *args, **kwargs):
        self.accesses += 1
        return super().get(*args, **kwargs)

    def __getitem__(self, key):
        self.accesses += 1
        return super().__getitem__(key)

    def __iter__(self):
        self.accesses += 1
        return super().__iter__()

    def items(self):
        self.accesses += 1
        return super().items()

    def __contains__(self, key):
        self.accesses += 1
        return super().__contains__(key)


def _query(intent: str, start: str, end: str, **extra) -> dict:
    return {"intent": intent, "date_range": {"start": start, "end": end}, **extra}


def _full() -> SlotDayStatus:
    return SlotDayStatus(slots={slot: True for slot in ALL_SLOTS}, full_day_block=True)


def _engine(days: dict) -> AvailabilityQueryEngine:
    return AvailabilityQueryEngine(AvailabilityData(owner_id="owner-1", days=days))


class TestBounds:
    def test_start_after_end(self):
        with pytest.raises(ValidationError):
            _engine({}).execute(_query("find_days", "2026-01-10", "2026-01-01"))

    def test_span_over_ninety_days(self):
        with pytest.raises(ValidationError):
            _engine({}).execute(_query("find_days", "2026-01-01", "2026-04-02"))

    def test_span_of_exactly_ninety_days_is_allowed(self):
        result = _engine({}).execute(_query("find_days", "2026-01-01", "2026-04-01", result_count=1000))
        assert result.total_matches == 91

    @pytest.mark.parametrize("count", [0, 1001, -5])
    def test_result_count_out_of_range(self, count):
        with pytest.raises(ValidationError) as info:
            _engine({}).execute(_query("find_days", "2026-01-01", "2026-01-02", result_count=count))
        assert info.value.errors[0].field == "result_count"

    def test_bounds_checked_before_scanning(self):
        slots = CountingSlots({"09:00": True})
        engine = _engine({"2026-01-01": SlotDayStatus(slots=slots)})
        with pytest.raises(ValidationError):
            engine.execute(_query("find_slots", "2026-01-01", "2026-06-01"))
        assert slots.accesses == 0

    def test_unconstructed_model_is_still_checked(self):
        query = AvailabilityQuery.model_construct(
            intent=QueryIntent.FIND_DAYS,
            date_range=validate_query(_query("find_days", "2026-01-01", "2026-01-02")).date_range,
            result_count=0,
        )
        with pytest.raises(ValidationError):
            _engine({}).execute(query)

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            validate_query(_query("find_days", "2026-01-01", "2026-01-02", colour="blue"))

    def test_camel_case_aliases_are_accepted(self):
        query = validate_query(
            {"intent": "find_slots", "dateRange": {"start": "2026-01-01", "end": "2026-01-02"}, "timePreference": "morning", "count": 3}
        )
        assert query.result_count == 3


class TestDateIteration:
    def test_inclusive_and_crosses_month_boundary(self):
        days = list(iter_dates(date(2026, 1, 30), date(2026, 2, 2)))
        assert days == [date(2026, 1, 30), date(2026, 1, 31), date(2026, 2, 1), date(2026, 2, 2)]

    def test_single_day(self):
        assert list(iter_dates(date(2026, 1, 1), date(2026, 1, 1))) == [date(2026, 1, 1)]


class TestFindDays:
    def test_skips_full_days_and_blocked_half(self):
        engine = _engine(
            {
                "2026-01-01": _full(),
                "2026-01-02": SlotDayStatus(slots={"09:00": True}),
                "2026-01-03": SlotDayStatus(slots={"15:00": True}),
            }
        )
        result = engine.execute(_query("find_days", "2026-01-01", "2026-01-04", time_preference="morning"))
        assert [item.date.isoformat() for item in result.items] == ["2026-01-03", "2026-01-04"]
        assert result.items[0].state is DayState.PM_BLOCKED

    def test_evening_preference_uses_pm_half(self):
        engine = _engine({"2026-01-01": SlotDayStatus(slots={"13:00": True})})
        result = engine.execute(_query("find_days", "2026-01-01", "2026-01-01", time_preference="evening"))
        assert result.items == []
        assert result.hints

    def test_legacy_full_day_is_skipped(self):
        engine = _engine({"2026-01-01": LegacyDayStatus(status=LegacyStatus.FULL)})
        result = engine.execute(_query("find_days", "2026-01-01", "2026-01-02"))
        assert [item.date for item in result.items] == [date(2026, 1, 2)]


class TestFindSlots:
    def test_full_day_block_short_circuits_without_slot_access(self):
        slots = CountingSlots({slot: True for slot in ALL_SLOTS})
        engine = _engine({"2026-01-01": SlotDayStatus(slots=slots, full_day_block=True)})
        result = engine.execute(_query("find_slots", "2026-01-01", "2026-01-01"))
        assert result.items == []
        assert slots.accesses == 0

    def test_single_free_afternoon_hour_scenario(self):
        afternoon_busy = {slot: True for slot in ALL_SLOTS if slot != "15:00"}
        engine = _engine(
            {
                "2026-01-01": _full(),
                "2026-01-02": SlotDayStatus(slots=afternoon_busy),
                "2026-01-03": _full(),
            }
        )
        result = engine.execute(_query("find_slots", "2026-01-01", "2026-01-03", slot_duration="1hour"))
        assert len(result.items) == 1
        run = result.items[0]
        assert run.date == date(2026, 1, 2)
        assert (run.start, run.end, run.hours) == ("15:00", "16:00", 1)

    def test_runs_are_maximal_and_short_runs_dropped(self):
        busy = {"08:00": True, "14:00": True}
        engine = _engine({"2026-01-01": SlotDayStatus(slots=busy)})
        result = engine.execute(_query("find_slots", "2026-01-01", "2026-01-01", slot_duration="half-day"))
        assert [(run.start, run.end) for run in result.items] == [("15:00", "22:00")]

    def test_preference_limits_window(self):
        engine = _engine({})
        result = engine.execute(_query("find_slots", "2026-01-01", "2026-01-01", time_preference="afternoon"))
        assert len(result.items) == 1
        assert result.items[0].slots == AFTERNOON_SLOTS

    def test_result_count_truncates_and_hints(self):
        result = _engine({}).execute(_query("find_slots", "2026-01-01", "2026-01-05", result_count=2))
        assert len(result.items) == 2
        assert result.total_matches == 5
        assert "raise result_count" in result.hints[0]


class TestSuggestTimes:
    def test_window_is_placed_near_period_centre(self):
        result = _engine({}).execute(
            _query("suggest_times", "2026-01-01", "2026-01-01", time_preference="morning", slot_duration="1hour")
        )
        assert result.items[0].start == "08:00"

    def test_sooner_days_rank_higher_on_equal_fit(self):
        result = _engine({}).execute(_query("suggest_times", "2026-01-01", "2026-01-03", time_preference="afternoon"))
        assert [item.date.day for item in result.items] == [1, 2, 3]
        assert result.items[0].score > result.items[1].score

    def test_tight_fit_beats_long_run(self):
        tight = {slot: True for slot in ALL_SLOTS if slot not in ("14:00",)}
        engine = _engine({"2026-01-02": SlotDayStatus(slots=tight)})
        result = engine.execute(_query("suggest_times", "2026-01-01", "2026-01-02"))
        assert result.items[0].date == date(2026, 1, 2)

    def test_ties_break_by_date_then_slot(self):
        engine = _engine({"2026-01-01": SlotDayStatus(slots={"12:00": True})})
        result = engine.execute(_query("suggest_times", "2026-01-01", "2026-01-01", result_count=10))
        scores = [item.score for item in result.items]
        assert scores == sorted(scores, reverse=True)
        repeat = engine.execute(_query("suggest_times", "2026-01-01", "2026-01-01", result_count=10))
        assert [item.to_dict() for item in repeat.items] == [item.to_dict() for item in result.items]

    def test_legacy_days_are_scored_from_their_half(self):
        engine = _engine({"2026-01-01": LegacyDayStatus(status=LegacyStatus.AM)})
        result = engine.execute(_query("suggest_times", "2026-01-01", "2026-01-01", time_preference="afternoon"))
        assert len(result.items) == 1
        assert result.items[0].start == "14:00"
        assert "half-day block" in result.items[0].reason

    def test_legacy_morning_block_leaves_no_morning_suggestion(self):
        engine = _engine({"2026-01-01": LegacyDayStatus(status=LegacyStatus.AM)})
        result = engine.execute(_query("suggest_times", "2026-01-01", "2026-01-01", time_preference="morning"))
        assert result.items == []
        assert "Try removing the time-of-day preference." in result.hints
