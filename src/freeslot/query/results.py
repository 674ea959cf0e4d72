from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Sequence, Union

from ..domain import DayState, QueryIntent, TimePreference
from ..domain.slots import slot_end_label
from .schema import AvailabilityQuery


@dataclass(frozen=True)
class DayResult:
    date: date
    state: DayState

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "state": self.state.value}


@dataclass(frozen=True)
class SlotRun:
    """A maximal run of consecutive free slots on one day."""

    date: date
    slots: tuple[str, ...]
    period: TimePreference

    @property
    def start(self) -> str:
        return self.slots[0]

    @property
    def end(self) -> str:
        return slot_end_label(self.slots[-1])

    @property
    def hours(self) -> int:
        return len(self.slots)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "start": self.start,
            "end": self.end,
            "hours": self.hours,
            "period": self.period.value,
        }


@dataclass(frozen=True)
class Suggestion:
    date: date
    start: str
    end: str
    hours: int
    period: TimePreference
    score: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "start": self.start,
            "end": self.end,
            "hours": self.hours,
            "period": self.period.value,
            "score": self.score,
            "reason": self.reason,
        }


ResultItem = Union[DayResult, SlotRun, Suggestion]


@dataclass(frozen=True)
class QueryResult:
    intent: QueryIntent
    items: Sequence[ResultItem]
    query: AvailabilityQuery
    total_matches: int = 0
    hints: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "query": self.query.to_payload(),
            "total_matches": self.total_matches,
            "items": [item.to_dict() for item in self.items],
            "hints": list(self.hints),
        }


__all__ = ["DayResult", "QueryResult", "ResultItem", "SlotRun", "Suggestion"]
