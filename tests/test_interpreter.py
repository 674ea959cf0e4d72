from __future__ import annotations

from dataclasses import replace
from datetime import date
from types import SimpleNamespace

import pytest

from freeslot.config import INTERPRETER_REMOTE
from freeslot.domain import QueryIntent, SlotDuration, TimePreference
from freeslot.errors import ConfigurationError, InterpretationError, ValidationError
from freeslot.interpreter import (
    MAX_REQUEST_LENGTH,
    FallbackInterpreter,
    InterpreterChain,
    QueryInterpreter,
    RemoteInterpreter,
    build_interpreter,
)

TODAY = date(2026, 1, 14)  # a Wednesday


class FailingInterpreter(QueryInterpreter):
    name = "failing"

    def __init__(self) -> None:
        self.calls = 0

    def interpret(self, text, *, today):
        self.calls += 1
        raise InterpretationError("service unreachable")


def _fake_client(content=None, error=None):
    def create(**kwargs):
        if error is not None:
            raise error
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.fixture
def remote_llm(settings):
    return replace(settings.llm, api_key="sk-test", mode=INTERPRETER_REMOTE)


class TestFallbackScenario:
    def test_primary_failure_still_yields_find_days_mornings(self):
        primary = FailingInterpreter()
        chain = InterpreterChain(primary=primary)
        result = chain.interpret("free mornings next week", today=TODAY)
        assert primary.calls == 1
        assert result.strategy == "fallback"
        assert result.warning
        assert result.query.intent is QueryIntent.FIND_DAYS
        assert result.query.time_preference is TimePreference.MORNING
        assert result.query.date_range.start == date(2026, 1, 19)
        assert result.query.date_range.end == date(2026, 1, 25)

    def test_force_fallback_skips_primary(self):
        primary = FailingInterpreter()
        result = InterpreterChain(primary=primary).interpret("free mornings next week", today=TODAY, force_fallback=True)
        assert primary.calls == 0
        assert result.warning is None


class TestInputBounds:
    @pytest.mark.parametrize("text", ["", "    ", "\n\t"])
    def test_empty_request_rejected(self, text):
        with pytest.raises(ValidationError):
            InterpreterChain().interpret(text, today=TODAY)

    def test_overlong_request_rejected(self):
        with pytest.raises(ValidationError):
            InterpreterChain().interpret("a" * (MAX_REQUEST_LENGTH + 1), today=TODAY)

    def test_request_at_limit_is_accepted(self):
        text = "free days " + "x" * (MAX_REQUEST_LENGTH - 10)
        assert InterpreterChain().interpret(text, today=TODAY).query.intent is QueryIntent.FIND_DAYS


class TestFallbackParser:
    def _parse(self, text):
        return FallbackInterpreter().interpret(text, today=TODAY)

    def test_default_range_is_thirty_days(self):
        query = self._parse("when am I free")
        assert (query.date_range.start, query.date_range.end) == (TODAY, date(2026, 2, 13))

    def test_slot_and_suggest_intents(self):
        assert self._parse("open slots this week").intent is QueryIntent.FIND_SLOTS
        assert self._parse("suggest a meeting time").intent is QueryIntent.SUGGEST_TIMES

    def test_count_and_period(self):
        query = self._parse("top 5 afternoon times this week")
        assert query.result_count == 5
        assert query.time_preference is TimePreference.AFTERNOON
        assert query.date_range.start == date(2026, 1, 12)

    def test_duration_and_month_name(self):
        query = self._parse("best half-day in March")
        assert query.intent is QueryIntent.SUGGEST_TIMES
        assert query.slot_duration is SlotDuration.HALF_DAY
        assert (query.date_range.start, query.date_range.end) == (date(2026, 3, 1), date(2026, 3, 31))

    @pytest.mark.parametrize(
        ("text", "start", "end"),
        [
            ("free tomorrow", date(2026, 1, 15), date(2026, 1, 15)),
            ("free today", TODAY, TODAY),
            ("this weekend", date(2026, 1, 17), date(2026, 1, 18)),
            ("next weekend", date(2026, 1, 24), date(2026, 1, 25)),
            ("next 10 days", TODAY, date(2026, 1, 24)),
            ("in 2 weeks", date(2026, 1, 26), date(2026, 2, 1)),
            ("next month", date(2026, 2, 1), date(2026, 2, 28)),
            ("this month", date(2026, 1, 1), date(2026, 1, 31)),
        ],
    )
    def test_relative_dates(self, text, start, end):
        query = self._parse(text)
        assert (query.date_range.start, query.date_range.end) == (start, end)

    def test_long_windows_are_capped(self):
        query = self._parse("next 52 weeks")
        assert (query.date_range.end - query.date_range.start).days == 90

    @pytest.mark.parametrize("text", ["free days next 5000000 days", "free days next 99999999999 weeks"])
    def test_huge_relative_windows_are_capped(self, text):
        query = self._parse(text)
        assert query.date_range.start == TODAY
        assert (query.date_range.end - query.date_range.start).days == 90

    def test_far_week_offset_uses_default_window(self):
        query = self._parse("in 999999 weeks")
        assert (query.date_range.start, query.date_range.end) == (TODAY, date(2026, 2, 13))

    def test_dates_past_the_calendar_are_a_validation_error(self):
        with pytest.raises(ValidationError):
            FallbackInterpreter().interpret("next 10 days", today=date(9999, 12, 30))

    def test_chain_keeps_oversized_offsets_in_range(self):
        result = InterpreterChain().interpret("free days next 5000000 days", today=TODAY)
        assert result.strategy == "fallback"
        assert result.query.date_range.end == date(2026, 4, 14)

    def test_modal_may_is_not_a_month(self):
        query = self._parse("may I see free slots")
        assert (query.date_range.start, query.date_range.end) == (TODAY, date(2026, 2, 13))
        assert self._parse("free days in may").date_range.start == date(2026, 5, 1)
        assert self._parse("may 12 afternoon").date_range.start == date(2026, 5, 1)

    @pytest.mark.parametrize("text", ["free sometime next week", "anytime next week"])
    def test_time_inside_other_words_keeps_find_days(self, text):
        assert self._parse(text).intent is QueryIntent.FIND_DAYS


class TestRemoteInterpreter:
    def test_missing_key_fails_fast(self, settings):
        with pytest.raises(ConfigurationError):
            RemoteInterpreter(replace(settings.llm, mode=INTERPRETER_REMOTE))

    def test_build_interpreter_requires_key_unless_offline(self, settings):
        online = replace(settings, llm=replace(settings.llm, mode=INTERPRETER_REMOTE))
        with pytest.raises(ConfigurationError):
            build_interpreter(online)
        assert build_interpreter(online, offline=True).offline is True

    def test_valid_json_is_returned(self, remote_llm):
        content = '{"intent": "find_slots", "date_range": {"start": "2026-01-19", "end": "2026-01-23"}, "time_preference": "evening"}'
        interpreter = RemoteInterpreter(remote_llm, client=_fake_client(content))
        result = InterpreterChain(primary=interpreter).interpret("evening slots next week", today=TODAY)
        assert result.strategy == "remote"
        assert result.query.time_preference is TimePreference.EVENING

    def test_timeout_falls_back(self, remote_llm):
        interpreter = RemoteInterpreter(remote_llm, client=_fake_client(error=TimeoutError("timed out")))
        result = InterpreterChain(primary=interpreter).interpret("free mornings next week", today=TODAY)
        assert result.strategy == "fallback"
        assert "timed out" in result.warning

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            "[]",
            '{"intent": "find_days", "date_range": {"start": "2026-01-01", "end": "2026-12-31"}}',
        ],
    )
    def test_unusable_output_is_an_interpretation_error(self, remote_llm, content):
        interpreter = RemoteInterpreter(remote_llm, client=_fake_client(content))
        with pytest.raises(InterpretationError):
            interpreter.interpret("anything", today=TODAY)

    @pytest.mark.parametrize(
        "response",
        [
            SimpleNamespace(choices=[]),
            SimpleNamespace(choices=[SimpleNamespace()]),
            SimpleNamespace(choices=None),
            SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=42))]),
        ],
    )
    def test_malformed_response_falls_back(self, remote_llm, response):
        client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=lambda **kwargs: response)))
        interpreter = RemoteInterpreter(remote_llm, client=client)
        result = InterpreterChain(primary=interpreter).interpret("free mornings next week", today=TODAY)
        assert result.strategy == "fallback"
        assert result.query.time_preference is TimePreference.MORNING
        assert result.warning
