from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from ..domain import (
    AvailabilityData,
    DayRecord,
    DayState,
    HalfDay,
    OwnerProfile,
    block_full_day,
    block_half,
    day_state,
    set_slot,
    unblock_half,
)
from ..domain.slots import ALL_SLOTS
from ..errors import FieldError, ValidationError
from ..query.engine import iter_dates
from ..query.schema import MAX_RANGE_DAYS
from .context import ServiceContext
from .migration import MigrationStats

logger = logging.getLogger(__name__)

DayInput = Union[date, str]
Transition = Callable[[Optional[DayRecord]], Optional[DayRecord]]


def parse_day(value: DayInput, *, field_name: str = "day") -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError.for_field(field_name, f"invalid ISO date: {value!r}") from exc


def parse_half(value: Union[HalfDay, str]) -> HalfDay:
    try:
        return HalfDay(str(value.value if isinstance(value, HalfDay) else value).lower())
    except ValueError as exc:
        raise ValidationError.for_field("half", "must be 'am' or 'pm'") from exc


@dataclass(slots=True)
class AvailabilityService:
    """Owns the session's availability data: loaded once, mutated in place, saved after each change."""

    context: ServiceContext
    _data: Optional[AvailabilityData] = field(default=None, init=False, repr=False)
    _batch_depth: int = field(default=0, init=False, repr=False)
    _dirty: bool = field(default=False, init=False, repr=False)

    @property
    def data(self) -> AvailabilityData:
        if self._data is None:
            loaded = self.context.store.load()
            if loaded is None:
                logger.info("No stored availability data; starting with an empty calendar")
                loaded = AvailabilityData.empty(self.context.owner_id, now=self.context.clock())
            self._data = loaded
        return self._data

    def reload(self) -> AvailabilityData:
        self._data = None
        return self.data

    # ------------------------------------------------------------------ reads

    def record_for(self, day: DayInput) -> Optional[DayRecord]:
        return self.data.record_for(parse_day(day))

    def day_state(self, day: DayInput) -> DayState:
        return day_state(self.record_for(day))

    def occupied_slots(self, day: DayInput) -> List[str]:
        record = self.record_for(day)
        return list(record.occupied_slots()) if record is not None else []

    # ------------------------------------------------------------------ mutations

    def block_half(self, day: DayInput, half: Union[HalfDay, str], *, event_label: Optional[str] = None) -> DayState:
        target = parse_half(half)
        return self._apply(day, lambda record: block_half(record, target, event_label=event_label))

    def unblock_half(self, day: DayInput, half: Union[HalfDay, str]) -> DayState:
        target = parse_half(half)
        return self._apply(day, lambda record: unblock_half(record, target))

    def block_day(self, day: DayInput, *, event_label: Optional[str] = None) -> DayState:
        return self._apply(day, lambda record: block_full_day(record, event_label=event_label))

    def unblock_day(self, day: DayInput) -> DayState:
        return self._apply(day, lambda record: None)

    def set_slot(self, day: DayInput, slot: str, occupied: bool) -> DayState:
        if slot not in ALL_SLOTS:
            raise ValidationError.for_field("slot", f"unknown slot label {slot!r}")
        return self._apply(day, lambda record: set_slot(record, slot, occupied))

    def block_range(
        self,
        start: DayInput,
        end: DayInput,
        *,
        half: Optional[Union[HalfDay, str]] = None,
        event_label: Optional[str] = None,
    ) -> Dict[str, DayState]:
        first = parse_day(start, field_name="start")
        last = parse_day(end, field_name="end")
        if first > last:
            raise ValidationError.for_field("start", "start must be on or before end")
        if (last - first).days > MAX_RANGE_DAYS:
            raise ValidationError.for_field("end", f"range may span at most {MAX_RANGE_DAYS} days")

        states: Dict[str, DayState] = {}
        with self.batch():
            for day in iter_dates(first, last):
                if half is None:
                    states[day.isoformat()] = self.block_day(day, event_label=event_label)
                else:
                    states[day.isoformat()] = self.block_half(day, half, event_label=event_label)
        return states

    def _apply(self, day: DayInput, transition: Transition) -> DayState:
        key = parse_day(day).isoformat()
        data = self.data
        current = data.days.get(key)
        updated = transition(current)
        if updated is current:
            return day_state(current)
        if updated is None:
            data.days.pop(key, None)
        else:
            data.days[key] = updated
        data.last_modified = self.context.clock()
        self._dirty = True
        if self._batch_depth == 0:
            self.save()
        return day_state(updated)

    @contextmanager
    def batch(self) -> Iterator[AvailabilityData]:
        """Group mutations into one save; on error the in-memory data is rolled back unsaved."""

        snapshot = self.data.copy() if self._batch_depth == 0 else None
        self._batch_depth += 1
        try:
            yield self.data
        except BaseException:
            if snapshot is not None:
                self._data = snapshot
                self._dirty = False
            raise
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0 and self._dirty:
            self.save()

    def save(self) -> None:
        self.context.store.save(self.data)
        self._dirty = False

    # ------------------------------------------------------------------ import / export

    def export_data(self) -> Dict[str, Any]:
        if self._dirty:
            self.save()
        return self.context.store.export_data()

    def import_data(self, payload: Any, *, merge: bool = False) -> AvailabilityData:
        self._data = self.context.store.import_data(payload, merge=merge)
        self._dirty = False
        return self._data

    def migration_stats(self) -> MigrationStats:
        return self.context.store.migration.migration_stats(self.data)

    # ------------------------------------------------------------------ profile

    def get_profile(self) -> Optional[OwnerProfile]:
        return self.context.store.load_profile()

    def update_profile(self, **changes: Any) -> OwnerProfile:
        current = self.get_profile()
        record = current.to_record() if current is not None else {"id": self.context.owner_id}
        record.update({key: value for key, value in changes.items() if value is not None})
        missing = [name for name in ("display_name", "email") if not record.get(name)]
        if missing:
            raise ValidationError(
                f"Profile is missing {', '.join(missing)}",
                [FieldError(f"profile.{name}", "field required") for name in missing],
            )
        profile = OwnerProfile.from_record(record)
        self.context.store.save_profile(profile)
        return profile


__all__ = ["AvailabilityService", "parse_day", "parse_half"]
