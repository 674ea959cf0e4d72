from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from ..domain import DayState
from ..errors import ValidationError
from ..services.availability import parse_day
from .registry import register_api
from .state import ApiState


def _parse_today(value: Optional[str]) -> Optional[date]:
    return parse_day(value, field_name="today") if value else None


def _day_payload(state: ApiState, day: str, day_state: Optional[DayState] = None) -> Dict[str, Any]:
    target = parse_day(day)
    current = day_state or state.availability.day_state(target)
    record = state.availability.record_for(target)
    return {
        "date": target.isoformat(),
        "state": current.value,
        "occupied_slots": state.availability.occupied_slots(target),
        "event_label": record.event_label if record is not None else None,
    }


@register_api(
    "interpret_query",
    description="Turn a free-text availability request into a structured query.",
    category="queries",
    tags=("read", "interpreter"),
)
def interpret_query(
    state: ApiState,
    text: str,
    today: Optional[str] = None,
    force_fallback: bool = False,
) -> Dict[str, Any]:
    result = state.queries.interpret(text, today=_parse_today(today), force_fallback=force_fallback)
    return result.to_dict()


@register_api(
    "execute_query",
    description="Run a structured find_days, find_slots or suggest_times query.",
    category="queries",
    tags=("read",),
)
def execute_query(state: ApiState, query: Dict[str, Any]) -> Dict[str, Any]:
    return state.queries.execute(query).to_dict()


@register_api(
    "ask_availability",
    description="Interpret a free-text request and answer it in one call.",
    category="queries",
    tags=("read", "interpreter"),
)
def ask_availability(
    state: ApiState,
    text: str,
    today: Optional[str] = None,
    force_fallback: bool = False,
) -> Dict[str, Any]:
    return state.queries.ask(text, today=_parse_today(today), force_fallback=force_fallback)


@register_api(
    "day_status",
    description="Return the block state and occupied hourly slots of one day.",
    category="availability",
    tags=("read",),
)
def day_status(state: ApiState, day: str) -> Dict[str, Any]:
    return _day_payload(state, day)


@register_api(
    "block_half_day",
    description="Block the morning (am) or afternoon/evening (pm) half of a day.",
    category="availability",
    tags=("write",),
)
def block_half_day(state: ApiState, day: str, half: str, event_label: Optional[str] = None) -> Dict[str, Any]:
    result = state.availability.block_half(day, half, event_label=event_label)
    return _day_payload(state, day, result)


@register_api(
    "unblock_half_day",
    description="Release the am or pm half of a day; releasing a free half changes nothing.",
    category="availability",
    tags=("write",),
)
def unblock_half_day(state: ApiState, day: str, half: str) -> Dict[str, Any]:
    result = state.availability.unblock_half(day, half)
    return _day_payload(state, day, result)


@register_api(
    "block_day",
    description="Block a whole day.",
    category="availability",
    tags=("write",),
)
def block_day(state: ApiState, day: str, event_label: Optional[str] = None) -> Dict[str, Any]:
    result = state.availability.block_day(day, event_label=event_label)
    return _day_payload(state, day, result)


@register_api(
    "unblock_day",
    description="Make a day fully available again.",
    category="availability",
    tags=("write",),
)
def unblock_day(state: ApiState, day: str) -> Dict[str, Any]:
    result = state.availability.unblock_day(day)
    return _day_payload(state, day, result)


@register_api(
    "block_date_range",
    description="Block every day (or one half of every day) between two dates inclusive.",
    category="availability",
    tags=("write", "bulk"),
)
def block_date_range(
    state: ApiState,
    start: str,
    end: str,
    half: Optional[str] = None,
    event_label: Optional[str] = None,
) -> Dict[str, Any]:
    states = state.availability.block_range(start, end, half=half, event_label=event_label)
    return {"days": {day: value.value for day, value in states.items()}}


@register_api(
    "set_slot",
    description="Mark a single hourly slot (e.g. '14:00') as occupied or free.",
    category="availability",
    tags=("write",),
)
def set_slot(state: ApiState, day: str, slot: str, occupied: bool = True) -> Dict[str, Any]:
    if not isinstance(occupied, bool):
        raise ValidationError.for_field("occupied", "must be a boolean")
    result = state.availability.set_slot(day, slot, occupied)
    return _day_payload(state, day, result)


@register_api(
    "export_data",
    description="Export the availability document and owner profile as a versioned envelope.",
    category="storage",
    tags=("read", "export"),
)
def export_data(state: ApiState) -> Dict[str, Any]:
    return state.availability.export_data()


@register_api(
    "import_data",
    description="Validate and import a previously exported envelope or availability document.",
    category="storage",
    tags=("write", "import"),
)
def import_data(state: ApiState, payload: Dict[str, Any], merge: bool = False) -> Dict[str, Any]:
    data = state.availability.import_data(payload, merge=merge)
    return {"imported_days": len(data.days), "merge": merge}


@register_api(
    "migration_stats",
    description="Summarize blocked dates, full-day blocks and blocked slots of the stored data.",
    category="storage",
    tags=("read", "diagnostics"),
)
def migration_stats(state: ApiState) -> Dict[str, Any]:
    return state.availability.migration_stats().to_dict()


@register_api(
    "get_profile",
    description="Return the stored owner profile, if any.",
    category="profile",
    tags=("read",),
)
def get_profile(state: ApiState) -> Dict[str, Any]:
    profile = state.availability.get_profile()
    return {"profile": profile.to_record() if profile is not None else None}


@register_api(
    "update_profile",
    description="Create or update the owner profile.",
    category="profile",
    tags=("write",),
)
def update_profile(
    state: ApiState,
    display_name: Optional[str] = None,
    email: Optional[str] = None,
    slug: Optional[str] = None,
    timezone: Optional[str] = None,
    is_public: Optional[bool] = None,
) -> Dict[str, Any]:
    profile = state.availability.update_profile(
        display_name=display_name,
        email=email,
        slug=slug,
        timezone=timezone,
        is_public=is_public,
    )
    return {"profile": profile.to_record()}
