"""Structured availability query shared by the interpreter and the engine."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..domain import QueryIntent, SlotDuration, TimePreference
from ..errors import ValidationError

MAX_RANGE_DAYS = 90
MAX_RESULTS = 1000
DEFAULT_RESULTS = 10


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    start: date
    end: date

    @model_validator(mode="after")
    def _check_bounds(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must be on or before end")
        if (self.end - self.start).days > MAX_RANGE_DAYS:
            raise ValueError(f"date range may span at most {MAX_RANGE_DAYS} days")
        return self

    @property
    def span_days(self) -> int:
        return (self.end - self.start).days


class AvailabilityQuery(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    intent: QueryIntent
    date_range: DateRange = Field(validation_alias=AliasChoices("date_range", "dateRange"))
    time_preference: Optional[TimePreference] = Field(
        default=None,
        validation_alias=AliasChoices("time_preference", "timePreference"),
    )
    slot_duration: Optional[SlotDuration] = Field(
        default=None,
        validation_alias=AliasChoices("slot_duration", "slotDuration"),
    )
    result_count: int = Field(
        default=DEFAULT_RESULTS,
        ge=1,
        le=MAX_RESULTS,
        validation_alias=AliasChoices("result_count", "resultCount", "count"),
    )

    @property
    def duration_hours(self) -> int:
        return (self.slot_duration or SlotDuration.ONE_HOUR).hours

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


QueryInput = Union[AvailabilityQuery, Mapping[str, Any]]


def validate_query(payload: QueryInput) -> AvailabilityQuery:
    """Return a checked :class:`AvailabilityQuery` or raise :class:`ValidationError`."""

    if isinstance(payload, AvailabilityQuery):
        return payload
    if not isinstance(payload, Mapping):
        raise ValidationError.for_field("__root__", "query must be an object")
    try:
        return AvailabilityQuery.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


__all__ = [
    "AvailabilityQuery",
    "DEFAULT_RESULTS",
    "DateRange",
    "MAX_RANGE_DAYS",
    "MAX_RESULTS",
    "QueryInput",
    "validate_query",
]
