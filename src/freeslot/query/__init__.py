"""Structured availability queries and the engine that answers them."""

from __future__ import annotations

from .engine import AvailabilityQueryEngine
from .results import DayResult, QueryResult, SlotRun, Suggestion
from .schema import MAX_RANGE_DAYS, MAX_RESULTS, AvailabilityQuery, DateRange, validate_query

__all__ = [
    "AvailabilityQuery",
    "AvailabilityQueryEngine",
    "DateRange",
    "DayResult",
    "MAX_RANGE_DAYS",
    "MAX_RESULTS",
    "QueryResult",
    "SlotRun",
    "Suggestion",
    "validate_query",
]
