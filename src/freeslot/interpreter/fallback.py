"""Deterministic keyword parser used when the language model is unavailable."""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, timedelta
from typing import Any, Dict, Optional, Tuple

from ..domain import QueryIntent, SlotDuration, TimePreference
from ..errors import InterpretationError, ValidationError
from ..query import MAX_RANGE_DAYS, MAX_RESULTS, AvailabilityQuery, validate_query
from .base import QueryInterpreter

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
# "in N weeks" beyond this is ignored and the default window applies.
MAX_WEEKS_AHEAD = 520

_COUNT_PATTERN = re.compile(r"top (\d+)|(\d+) (?:times|suggestions|results)")
_NEXT_DAYS_PATTERN = re.compile(r"next (\d+) (day|week)s?")
_IN_WEEKS_PATTERN = re.compile(r"in (\d+) weeks?")
_ONE_HOUR_PATTERN = re.compile(r"\b(?:1|one|an)[ -]?hour\b|\bhourly\b")
_MAY_PATTERN = re.compile(r"\b(?:in|during|for|of) may\b|\bmay \d{1,2}(?:st|nd|rd|th)?\b|\b\d{1,2}(?:st|nd|rd|th)? may\b")
_SUGGEST_PATTERN = re.compile(r"\b(?:suggest\w*|best|recommend\w*)\b")
_SLOTS_PATTERN = re.compile(r"\b(?:slots?|times?)\b")
_MONTHS = {name.lower(): index for index, name in enumerate(calendar.month_name) if name}

DateSpan = Tuple[date, date]


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _month_span(year: int, month: int) -> DateSpan:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def _next_month(day: date) -> Tuple[int, int]:
    return (day.year + 1, 1) if day.month == 12 else (day.year, day.month + 1)


def resolve_date_range(text: str, today: date) -> DateSpan:
    """Map relative date phrases onto an inclusive date span anchored at ``today``.

    Raises :class:`OverflowError` when the span would leave the calendar.
    """

    match = _NEXT_DAYS_PATTERN.search(text)
    if match:
        amount = min(int(match.group(1)) * (7 if match.group(2) == "week" else 1), MAX_RANGE_DAYS)
        return today, today + timedelta(days=max(amount, 1))

    match = _IN_WEEKS_PATTERN.search(text)
    if match and int(match.group(1)) <= MAX_WEEKS_AHEAD:
        start = _week_start(today) + timedelta(weeks=int(match.group(1)))
        return start, start + timedelta(days=6)

    if "tomorrow" in text:
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow
    if "today" in text or "tonight" in text:
        return today, today

    weekend = _week_start(today) + timedelta(days=5)
    if "next weekend" in text:
        return weekend + timedelta(days=7), weekend + timedelta(days=8)
    if "weekend" in text:
        return weekend, weekend + timedelta(days=1)

    if "next week" in text:
        start = _week_start(today) + timedelta(days=7)
        return start, start + timedelta(days=6)
    if "this week" in text:
        start = _week_start(today)
        return start, start + timedelta(days=6)

    if "next month" in text:
        return _month_span(*_next_month(today))
    if "this month" in text:
        return _month_span(today.year, today.month)

    for name, month in _MONTHS.items():
        # "may" is usually the modal verb unless a date context surrounds it.
        pattern = _MAY_PATTERN if name == "may" else re.compile(rf"\b{name}\b")
        if pattern.search(text):
            year = today.year if month >= today.month else today.year + 1
            return _month_span(year, month)

    return today, today + timedelta(days=DEFAULT_WINDOW_DAYS)


def detect_intent(text: str) -> QueryIntent:
    if _SUGGEST_PATTERN.search(text):
        return QueryIntent.SUGGEST_TIMES
    if _SLOTS_PATTERN.search(text):
        return QueryIntent.FIND_SLOTS
    return QueryIntent.FIND_DAYS


def detect_time_preference(text: str) -> TimePreference:
    preference = TimePreference.ANY
    for candidate in (TimePreference.MORNING, TimePreference.AFTERNOON, TimePreference.EVENING):
        if candidate.value in text:
            preference = candidate
    if preference is TimePreference.ANY and "tonight" in text:
        preference = TimePreference.EVENING
    return preference


def detect_duration(text: str) -> Optional[SlotDuration]:
    if "half day" in text or "half-day" in text:
        return SlotDuration.HALF_DAY
    if any(phrase in text for phrase in ("full day", "full-day", "all day", "all-day")):
        return SlotDuration.FULL_DAY
    if _ONE_HOUR_PATTERN.search(text):
        return SlotDuration.ONE_HOUR
    return None


def detect_count(text: str) -> Optional[int]:
    match = _COUNT_PATTERN.search(text)
    if not match:
        return None
    return min(max(int(match.group(1) or match.group(2)), 1), MAX_RESULTS)


class FallbackInterpreter(QueryInterpreter):
    name = "fallback"

    def build_payload(self, text: str, *, today: date) -> Dict[str, Any]:
        lowered = text.lower()
        try:
            start, end = resolve_date_range(lowered, today)
        except OverflowError as exc:
            raise ValidationError.for_field("text", "the requested dates fall outside the supported calendar") from exc
        payload: Dict[str, Any] = {
            "intent": detect_intent(lowered).value,
            "date_range": {"start": start.isoformat(), "end": end.isoformat()},
            "time_preference": detect_time_preference(lowered).value,
        }
        duration = detect_duration(lowered)
        if duration is not None:
            payload["slot_duration"] = duration.value
        count = detect_count(lowered)
        if count is not None:
            payload["result_count"] = count
        return payload

    def interpret(self, text: str, *, today: date) -> AvailabilityQuery:
        payload = self.build_payload(text, today=today)
        try:
            query = validate_query(payload)
        except ValidationError as exc:
            raise InterpretationError(f"Fallback parser produced an invalid query: {exc.message}") from exc
        logger.debug("Fallback interpreter produced %s", payload)
        return query


__all__ = [
    "FallbackInterpreter",
    "detect_count",
    "detect_duration",
    "detect_intent",
    "detect_time_preference",
    "resolve_date_range",
]
