from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from .enums import HalfDay, LegacyStatus, SchemaVersion
from .slots import ALL_SLOTS, HALF_SLOTS, SLOT_INDEX

PROTOTYPE_KEYS = frozenset({"__proto__", "constructor", "prototype"})
_DATE_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_prototype_key(key: Any) -> bool:
    if not isinstance(key, str):
        return True
    return key in PROTOTYPE_KEYS or (key.startswith("__") and key.endswith("__"))


def own_items(mapping: Mapping[Any, Any]) -> Iterator[Tuple[str, Any]]:
    """Yield ``(key, value)`` pairs of externally supplied data, skipping prototype names."""

    for key, value in mapping.items():
        if is_prototype_key(key):
            continue
        yield key, value


def is_valid_date_key(key: Any) -> bool:
    if not isinstance(key, str) or not _DATE_KEY.match(key):
        return False
    try:
        date.fromisoformat(key)
    except ValueError:
        return False
    return True


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    text = value.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


@dataclass(slots=True)
class LegacyDayStatus:
    """Version 1 record: a coarse full / AM / PM block."""

    status: LegacyStatus
    event_label: Optional[str] = None

    @property
    def is_full_day(self) -> bool:
        return self.status is LegacyStatus.FULL

    def occupied_slots(self) -> Tuple[str, ...]:
        if self.status is LegacyStatus.FULL:
            return ALL_SLOTS
        if self.status is LegacyStatus.AM:
            return HALF_SLOTS[HalfDay.AM]
        return HALF_SLOTS[HalfDay.PM]

    def to_record(self, day: str) -> Dict[str, Any]:
        record: Dict[str, Any] = {"date": day, "status": self.status.value}
        if self.event_label is not None:
            record["event_label"] = self.event_label
        return record


@dataclass(slots=True)
class SlotDayStatus:
    """Version 2 record: per-hour occupancy plus a full-day flag."""

    slots: Dict[str, bool] = field(default_factory=dict)
    full_day_block: bool = False
    event_label: Optional[str] = None

    @classmethod
    def from_legacy(cls, legacy: LegacyDayStatus) -> "SlotDayStatus":
        return cls(
            slots={slot: True for slot in legacy.occupied_slots()},
            full_day_block=legacy.is_full_day,
            event_label=legacy.event_label,
        )

    @property
    def is_full_day(self) -> bool:
        # Only the flag is consulted; the slot map is never touched here.
        return self.full_day_block

    def is_occupied(self, slot: str) -> bool:
        return self.full_day_block or bool(self.slots.get(slot))

    def occupied_slots(self) -> Tuple[str, ...]:
        if self.full_day_block:
            return ALL_SLOTS
        return tuple(slot for slot in ALL_SLOTS if self.slots.get(slot))

    def copy(self) -> "SlotDayStatus":
        return SlotDayStatus(
            slots=dict(self.slots),
            full_day_block=self.full_day_block,
            event_label=self.event_label,
        )

    def to_record(self) -> Dict[str, Any]:
        ordered = sorted(self.slots.items(), key=lambda item: SLOT_INDEX.get(item[0], len(SLOT_INDEX)))
        record: Dict[str, Any] = {
            "slots": [[slot, bool(value)] for slot, value in ordered],
            "full_day_block": self.full_day_block,
        }
        if self.event_label is not None:
            record["event_label"] = self.event_label
        return record


DayRecord = Union[LegacyDayStatus, SlotDayStatus]


@dataclass(slots=True)
class AvailabilityData:
    owner_id: str
    days: Dict[str, DayRecord] = field(default_factory=dict)
    schema_version: SchemaVersion = SchemaVersion.V2
    last_modified: Optional[datetime] = None

    @classmethod
    def empty(cls, owner_id: str = "default", *, now: Optional[datetime] = None) -> "AvailabilityData":
        return cls(owner_id=owner_id, days={}, schema_version=SchemaVersion.V2, last_modified=now or utc_now())

    def record_for(self, day: date) -> Optional[DayRecord]:
        return self.days.get(day.isoformat())

    def copy(self) -> "AvailabilityData":
        days: Dict[str, DayRecord] = {}
        for key, record in self.days.items():
            if isinstance(record, SlotDayStatus):
                days[key] = record.copy()
            else:
                days[key] = LegacyDayStatus(status=record.status, event_label=record.event_label)
        return AvailabilityData(
            owner_id=self.owner_id,
            days=days,
            schema_version=self.schema_version,
            last_modified=self.last_modified,
        )

    def to_document(self) -> Dict[str, Any]:
        """Encode into the string-safe versioned document (slot maps become pair lists)."""

        days: Dict[str, Any] = {}
        for key in sorted(self.days):
            record = self.days[key]
            if isinstance(record, SlotDayStatus):
                days[key] = record.to_record()
            else:
                days[key] = record.to_record(key)
        return {
            "schema_version": int(self.schema_version),
            "owner_id": self.owner_id,
            "last_modified": format_timestamp(self.last_modified),
            "days": days,
        }


@dataclass(slots=True)
class OwnerProfile:
    id: str
    display_name: str
    email: str
    slug: Optional[str] = None
    timezone: Optional[str] = None
    is_public: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "OwnerProfile":
        return cls(
            id=str(record["id"]),
            display_name=str(record["display_name"]),
            email=str(record["email"]),
            slug=record.get("slug"),
            timezone=record.get("timezone"),
            is_public=bool(record.get("is_public", False)),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "email": self.email,
            "slug": self.slug,
            "timezone": self.timezone,
            "is_public": self.is_public,
        }
