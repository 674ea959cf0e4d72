from __future__ import annotations

from datetime import date

import orjson
import pytest

from freeslot.domain import DayState, HalfDay
from freeslot.errors import ValidationError

KEY = "freeslot_availability_data"


class TestAvailabilityService:
    def test_starts_empty_and_saves_after_each_mutation(self, api_state, backend):
        service = api_state.availability
        assert service.data.days == {}
        assert backend.get_item(KEY) is None

        assert service.block_half("2026-01-15", "am") is DayState.AM_BLOCKED
        stored = orjson.loads(backend.get_item(KEY))
        assert list(stored["days"]) == ["2026-01-15"]
        assert stored["owner_id"] == "owner-1"

    def test_state_machine_scenario(self, api_state):
        service = api_state.availability
        service.block_half("2026-01-15", HalfDay.AM)
        assert service.block_half("2026-01-15", HalfDay.PM) is DayState.FULL_BLOCKED
        assert service.unblock_half("2026-01-15", HalfDay.AM) is DayState.PM_BLOCKED
        assert service.unblock_half("2026-01-15", HalfDay.PM) is DayState.AVAILABLE
        assert "2026-01-15" not in service.data.days

    def test_loaded_once_per_session(self, api_state, backend):
        service = api_state.availability
        service.block_day("2026-01-15")
        backend.remove_item(KEY)
        assert service.day_state("2026-01-15") is DayState.FULL_BLOCKED
        assert service.reload().days == {}

    def test_batch_saves_once(self, api_state, backend):
        writes = []
        original = backend.set_item

        def counting(key, value):
            writes.append(key)
            original(key, value)

        backend.set_item = counting
        states = api_state.availability.block_range("2026-01-01", "2026-01-05", half="pm", event_label="Tour")
        assert len(states) == 5
        assert set(states.values()) == {DayState.PM_BLOCKED}
        assert writes == [KEY]

    def test_failed_batch_rolls_back(self, api_state, backend):
        service = api_state.availability
        service.block_day("2026-01-01")
        with pytest.raises(RuntimeError):
            with service.batch():
                service.block_day("2026-01-02")
                raise RuntimeError("boom")
        assert set(service.data.days) == {"2026-01-01"}
        assert set(orjson.loads(backend.get_item(KEY))["days"]) == {"2026-01-01"}

    def test_set_slot(self, api_state):
        service = api_state.availability
        assert service.set_slot("2026-01-15", "14:00", True) is DayState.PM_BLOCKED
        assert service.occupied_slots("2026-01-15") == ["14:00"]
        with pytest.raises(ValidationError):
            service.set_slot("2026-01-15", "25:00", True)

    @pytest.mark.parametrize(
        ("call", "args"),
        [
            ("block_day", ("2026-13-01",)),
            ("block_half", ("2026-01-01", "noon")),
            ("block_range", ("2026-02-01", "2026-01-01")),
            ("block_range", ("2026-01-01", "2026-06-01")),
        ],
    )
    def test_invalid_input(self, api_state, call, args):
        with pytest.raises(ValidationError):
            getattr(api_state.availability, call)(*args)

    def test_migration_stats(self, api_state):
        service = api_state.availability
        service.block_day("2026-01-01")
        service.block_half("2026-01-02", "am")
        stats = service.migration_stats()
        assert (stats.total_dates, stats.full_day_blocks, stats.partial_blocks) == (2, 1, 1)


class TestProfile:
    def test_update_requires_name_and_email(self, api_state):
        with pytest.raises(ValidationError):
            api_state.availability.update_profile(display_name="Ada")

    def test_update_and_read_back(self, api_state):
        service = api_state.availability
        service.update_profile(display_name="Ada", email="ada@example.com")
        profile = service.update_profile(slug="ada-l", is_public=True)
        assert profile.id == "owner-1"
        assert service.get_profile().slug == "ada-l"
        assert service.get_profile().is_public is True

    def test_invalid_email_rejected(self, api_state):
        with pytest.raises(ValidationError):
            api_state.availability.update_profile(display_name="Ada", email="not-an-email")


class TestQueryService:
    def test_ask_reports_strategy(self, api_state):
        api_state.availability.block_day("2026-01-20")
        answer = api_state.queries.ask("free mornings next week", today=date(2026, 1, 14))
        assert answer["strategy"] == "fallback"
        assert "2026-01-20" not in [item["date"] for item in answer["items"]]
