from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterator, List, Optional, Sequence, Tuple

from ..domain import (
    AvailabilityData,
    DayRecord,
    DayState,
    LegacyDayStatus,
    QueryIntent,
    TimePreference,
    day_state,
    half_blocked,
)
from ..domain.slots import (
    ALL_SLOTS,
    PERIOD_SLOTS,
    SLOT_INDEX,
    half_for_preference,
    period_center,
    period_for_slot,
    slot_end_label,
    slot_hour,
)
from ..errors import ValidationError
from .results import DayResult, QueryResult, ResultItem, SlotRun, Suggestion
from .schema import MAX_RANGE_DAYS, MAX_RESULTS, AvailabilityQuery, QueryInput, validate_query

logger = logging.getLogger(__name__)

PROXIMITY_WEIGHT = 0.5
FIT_WEIGHT = 0.3
RECENCY_WEIGHT = 0.2


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""

    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


def check_bounds(query: AvailabilityQuery) -> None:
    start, end = query.date_range.start, query.date_range.end
    if start > end:
        raise ValidationError.for_field("date_range", "start must be on or before end")
    if (end - start).days > MAX_RANGE_DAYS:
        raise ValidationError.for_field("date_range", f"date range may span at most {MAX_RANGE_DAYS} days")
    if not 1 <= query.result_count <= MAX_RESULTS:
        raise ValidationError.for_field("result_count", f"must be between 1 and {MAX_RESULTS}")


class AvailabilityQueryEngine:
    """Answers find-days, find-slots and suggest-times queries over loaded availability data."""

    def __init__(self, data: Optional[AvailabilityData] = None) -> None:
        self._data = data or AvailabilityData.empty()

    @property
    def data(self) -> AvailabilityData:
        return self._data

    def execute(self, query: QueryInput) -> QueryResult:
        checked = validate_query(query)
        check_bounds(checked)

        if checked.intent is QueryIntent.FIND_DAYS:
            matches: Sequence[ResultItem] = self.find_days(checked)
        elif checked.intent is QueryIntent.FIND_SLOTS:
            matches = self.find_slots(checked)
        else:
            matches = self.suggest_times(checked)

        items = list(matches[: checked.result_count])
        logger.debug(
            "Query %s over %s..%s matched %d item(s)",
            checked.intent.value,
            checked.date_range.start,
            checked.date_range.end,
            len(matches),
        )
        return QueryResult(
            intent=checked.intent,
            items=items,
            query=checked,
            total_matches=len(matches),
            hints=self._hints(checked, len(matches)),
        )

    # ------------------------------------------------------------------ intents

    def find_days(self, query: AvailabilityQuery) -> List[DayResult]:
        half = half_for_preference(query.time_preference)
        results: List[DayResult] = []
        for day in iter_dates(query.date_range.start, query.date_range.end):
            record = self._data.record_for(day)
            state = day_state(record)
            if state is DayState.FULL_BLOCKED:
                continue
            if half is not None and half_blocked(record, half):
                continue
            results.append(DayResult(date=day, state=state))
        return results

    def find_slots(self, query: AvailabilityQuery) -> List[SlotRun]:
        window = PERIOD_SLOTS[query.time_preference or TimePreference.ANY]
        minimum = query.duration_hours
        runs: List[SlotRun] = []
        for day in iter_dates(query.date_range.start, query.date_range.end):
            for run in self._free_runs(self._data.record_for(day), window):
                if len(run) < minimum:
                    continue
                runs.append(SlotRun(date=day, slots=run, period=self._run_period(query, run)))
        return runs

    def suggest_times(self, query: AvailabilityQuery) -> List[Suggestion]:
        duration = query.duration_hours
        center = period_center(query.time_preference)
        start = query.date_range.start
        span = query.date_range.span_days

        suggestions: List[Suggestion] = []
        for run in self.find_slots(query):
            first = self._best_start(run.slots, duration, center)
            window = run.slots[first : first + duration]
            midpoint = slot_hour(window[0]) + duration / 2
            proximity = max(0.0, 1 - abs(midpoint - center) / len(ALL_SLOTS))
            fit = duration / run.hours
            recency = 1 - (run.date - start).days / span if span else 1.0
            score = round(PROXIMITY_WEIGHT * proximity + FIT_WEIGHT * fit + RECENCY_WEIGHT * recency, 4)
            suggestions.append(
                Suggestion(
                    date=run.date,
                    start=window[0],
                    end=slot_end_label(window[-1]),
                    hours=duration,
                    period=period_for_slot(window[0]),
                    score=score,
                    reason=self._reason(query, run),
                )
            )
        suggestions.sort(key=lambda item: (-item.score, item.date, SLOT_INDEX[item.start]))
        return suggestions

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _free_runs(record: Optional[DayRecord], window: Sequence[str]) -> List[Tuple[str, ...]]:
        """Group the free slots of ``window`` into maximal consecutive runs."""

        if record is not None and record.is_full_day:
            return []
        occupied = set(record.occupied_slots()) if record is not None else set()
        runs: List[Tuple[str, ...]] = []
        current: List[str] = []
        for slot in window:
            if slot in occupied:
                if current:
                    runs.append(tuple(current))
                    current = []
                continue
            current.append(slot)
        if current:
            runs.append(tuple(current))
        return runs

    @staticmethod
    def _run_period(query: AvailabilityQuery, run: Tuple[str, ...]) -> TimePreference:
        if query.time_preference is not None and query.time_preference is not TimePreference.ANY:
            return query.time_preference
        return period_for_slot(run[0])

    @staticmethod
    def _best_start(run: Tuple[str, ...], duration: int, center: float) -> int:
        """Offset into ``run`` whose window midpoint lands closest to ``center``."""

        candidates = range(len(run) - duration + 1)
        return min(candidates, key=lambda offset: (abs(slot_hour(run[offset]) + duration / 2 - center), offset))

    def _reason(self, query: AvailabilityQuery, run: SlotRun) -> str:
        reason = f"{run.hours} consecutive hour{'s' if run.hours != 1 else ''} available"
        if query.time_preference is not None and query.time_preference is not TimePreference.ANY:
            reason += f", matches {query.time_preference.value} preference"
        if isinstance(self._data.record_for(run.date), LegacyDayStatus):
            reason += ", estimated from a half-day block"
        return reason

    @staticmethod
    def _hints(query: AvailabilityQuery, total: int) -> List[str]:
        if total > query.result_count:
            return [f"Showing {query.result_count} of {total} matches; raise result_count to see more."]
        if total:
            return []
        hints: List[str] = []
        if query.date_range.span_days < 14:
            hints.append("Try expanding the date range.")
        if query.time_preference is not None and query.time_preference is not TimePreference.ANY:
            hints.append("Try removing the time-of-day preference.")
        if query.intent is not QueryIntent.FIND_DAYS and query.duration_hours > 1:
            hints.append("Try a shorter slot duration.")
        if not hints:
            hints.append("No availability in this range.")
        return hints


__all__ = ["AvailabilityQueryEngine", "check_bounds", "iter_dates"]
