from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..domain import (
    AvailabilityData,
    DayRecord,
    HalfDay,
    LegacyDayStatus,
    LegacyStatus,
    SchemaVersion,
    SlotDayStatus,
    half_blocked,
    is_valid_date_key,
    own_items,
)
from ..domain.models import is_prototype_key, parse_timestamp, utc_now
from ..domain.slots import ALL_SLOTS, HALF_SLOTS, is_valid_slot
from ..errors import MigrationError, UnsupportedDowngradeError

logger = logging.getLogger(__name__)

# Field names written by earlier releases are still read.
_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "schema_version": ("schema_version", "version"),
    "owner_id": ("owner_id", "instructorId", "ownerId"),
    "last_modified": ("last_modified", "lastModified"),
    "days": ("days", "blockedDates"),
    "full_day_block": ("full_day_block", "fullDayBlock"),
    "event_label": ("event_label", "eventName", "eventLabel"),
}

AvailabilitySource = Union[AvailabilityData, Mapping[str, Any], None]


def read_field(record: Mapping[str, Any], name: str, default: Any = None) -> Any:
    for alias in _FIELD_ALIASES.get(name, (name,)):
        if alias in record:
            return record[alias]
    return default


def _slot_pairs(raw: Iterable[Any], day: str) -> Iterable[Tuple[Any, Any]]:
    for entry in raw:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise MigrationError(f"Invalid slot entry for {day}: {entry!r}")
        yield entry[0], entry[1]


def normalize_slot_map(raw: Any, *, day: str = "?") -> Dict[str, bool]:
    """Return a live slot mapping from either a mapping or a list of ``[slot, occupied]`` pairs.

    A list of pairs is what a mapping turns into after crossing the string
    store, so both shapes are accepted. Prototype-name keys are skipped; any
    other unknown slot label, a non-boolean value or a different container
    raises :class:`MigrationError`.
    """

    if isinstance(raw, Mapping):
        pairs: Iterable[Tuple[Any, Any]] = own_items(raw)
    elif isinstance(raw, (list, tuple)):
        pairs = _slot_pairs(raw, day)
    else:
        raise MigrationError(f"Invalid slots format for {day}: {type(raw).__name__}")

    slots: Dict[str, bool] = {}
    for slot, occupied in pairs:
        if is_prototype_key(slot):
            continue
        if not is_valid_slot(slot):
            raise MigrationError(f"Unknown slot {slot!r} for {day}")
        if not isinstance(occupied, bool):
            raise MigrationError(f"Slot {slot} for {day} must be a boolean")
        slots[slot] = occupied
    return slots


def is_v1_record(record: Any) -> bool:
    if isinstance(record, LegacyDayStatus):
        return True
    return isinstance(record, Mapping) and isinstance(record.get("status"), str) and "slots" not in record


def is_v2_record(record: Any) -> bool:
    """True for live slot maps *and* for their serialized list-of-pairs form."""

    if isinstance(record, SlotDayStatus):
        return True
    return isinstance(record, Mapping) and isinstance(record.get("slots"), (Mapping, list, tuple))


def _event_label(record: Mapping[str, Any], day: str) -> Optional[str]:
    label = read_field(record, "event_label")
    if label is None or isinstance(label, str):
        return label
    raise MigrationError(f"Event label for {day} must be a string")


def normalize_record(day: str, record: Any) -> DayRecord:
    if isinstance(record, (SlotDayStatus, LegacyDayStatus)):
        return record
    if is_v2_record(record):
        full_day = read_field(record, "full_day_block", False)
        if full_day is None:
            full_day = False
        if not isinstance(full_day, bool):
            raise MigrationError(f"full_day_block for {day} must be a boolean")
        slots = normalize_slot_map(record["slots"], day=day)
        return SlotDayStatus(
            slots=slots,
            full_day_block=full_day or all(slots.get(slot) for slot in ALL_SLOTS),
            event_label=_event_label(record, day),
        )
    if is_v1_record(record):
        try:
            status = LegacyStatus(record["status"])
        except ValueError as exc:
            raise MigrationError(f"Unknown status {record['status']!r} for {day}") from exc
        return LegacyDayStatus(status=status, event_label=_event_label(record, day))
    raise MigrationError(f"Unrecognized day record for {day}")


def _day_entries(raw_days: Any) -> Iterable[Tuple[Any, Any]]:
    if isinstance(raw_days, Mapping):
        return own_items(raw_days)
    if isinstance(raw_days, (list, tuple)):
        # v1 stored an array of {date, status, ...} records.
        return [(entry.get("date"), entry) for entry in raw_days if isinstance(entry, Mapping)]
    if raw_days is not None:
        logger.warning("Ignoring days container of type %s", type(raw_days).__name__)
    return ()


def ensure_maps_deserialized(raw_days: Any) -> Dict[str, DayRecord]:
    """Normalize every day of a decoded document, dropping only the entries that fail."""

    days: Dict[str, DayRecord] = {}
    for day, record in _day_entries(raw_days):
        if not is_valid_date_key(day):
            logger.warning("Skipping day with invalid date key %r", day)
            continue
        try:
            days[day] = normalize_record(day, record)
        except MigrationError as exc:
            logger.warning("Dropping day %s: %s", day, exc)
    return days


@dataclass(frozen=True)
class MigrationStats:
    version: int
    total_dates: int = 0
    full_day_blocks: int = 0
    partial_blocks: int = 0
    total_blocked_slots: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "version": self.version,
            "total_dates": self.total_dates,
            "full_day_blocks": self.full_day_blocks,
            "partial_blocks": self.partial_blocks,
            "total_blocked_slots": self.total_blocked_slots,
        }


@dataclass(slots=True)
class MigrationService:
    """Converts availability documents between schema versions."""

    default_owner_id: str = "default"
    clock: Callable[[], datetime] = field(default=utc_now)

    def detect_version(self, document: Mapping[str, Any]) -> SchemaVersion:
        raw = read_field(document, "schema_version")
        if raw is None:
            return SchemaVersion.V1
        try:
            return SchemaVersion(int(raw))
        except (TypeError, ValueError) as exc:
            raise MigrationError(f"Unsupported schema version: {raw!r}") from exc

    def migrate(self, source: AvailabilitySource) -> AvailabilityData:
        """Return version 2 data; already-current input passes through unchanged."""

        if source is None:
            return AvailabilityData.empty(self.default_owner_id, now=self.clock())
        if isinstance(source, AvailabilityData):
            if source.schema_version is SchemaVersion.V2:
                return source
            return self._upgrade(source.owner_id, dict(source.days))
        if not isinstance(source, Mapping):
            raise MigrationError(f"Unsupported availability document: {type(source).__name__}")
        if self.detect_version(source) is SchemaVersion.V2:
            return AvailabilityData(
                owner_id=self._owner_id(source),
                days=ensure_maps_deserialized(read_field(source, "days")),
                schema_version=SchemaVersion.V2,
                last_modified=parse_timestamp(read_field(source, "last_modified")),
            )
        return self.migrate_to_v2(source)

    def migrate_to_v2(self, document: Mapping[str, Any]) -> AvailabilityData:
        days = ensure_maps_deserialized(read_field(document, "days"))
        return self._upgrade(self._owner_id(document), days)

    def _upgrade(self, owner_id: str, days: Dict[str, DayRecord]) -> AvailabilityData:
        upgraded: Dict[str, DayRecord] = {}
        for day, record in days.items():
            upgraded[day] = SlotDayStatus.from_legacy(record) if isinstance(record, LegacyDayStatus) else record
        return AvailabilityData(
            owner_id=owner_id,
            days=upgraded,
            schema_version=SchemaVersion.V2,
            last_modified=self.clock(),
        )

    def _owner_id(self, document: Mapping[str, Any]) -> str:
        owner = read_field(document, "owner_id")
        return str(owner) if owner else self.default_owner_id

    # ------------------------------------------------------------------ downgrade

    def downgrade_record(self, day: str, record: DayRecord) -> Optional[LegacyDayStatus]:
        """Map a slot record onto full / AM / PM; patterns in between have no v1 form."""

        if isinstance(record, LegacyDayStatus):
            return record
        if record.full_day_block:
            return LegacyDayStatus(status=LegacyStatus.FULL, event_label=record.event_label)
        occupied = set(record.occupied_slots())
        if not occupied:
            return None
        if occupied == set(ALL_SLOTS):
            status = LegacyStatus.FULL
        elif occupied == set(HALF_SLOTS[HalfDay.AM]):
            status = LegacyStatus.AM
        elif occupied == set(HALF_SLOTS[HalfDay.PM]):
            status = LegacyStatus.PM
        else:
            raise UnsupportedDowngradeError(day, occupied)
        return LegacyDayStatus(status=status, event_label=record.event_label)

    def convert_to_v1(self, data: AvailabilityData) -> Dict[str, Any]:
        days: List[Dict[str, Any]] = []
        for day in sorted(data.days):
            legacy = self.downgrade_record(day, data.days[day])
            if legacy is not None:
                days.append(legacy.to_record(day))
        return {"schema_version": int(SchemaVersion.V1), "owner_id": data.owner_id, "days": days}

    # ------------------------------------------------------------------ diagnostics

    @staticmethod
    def derive_am_pm(record: Optional[DayRecord]) -> Tuple[bool, bool]:
        return half_blocked(record, HalfDay.AM), half_blocked(record, HalfDay.PM)

    def validate_migration(self, original: Mapping[str, Any], migrated: AvailabilityData) -> List[str]:
        """Check that every original blocked date survived with its event label."""

        errors: List[str] = []
        entries = [(day, record) for day, record in _day_entries(read_field(original, "days"))]
        if len(entries) != len(migrated.days):
            errors.append(f"Date count mismatch: {len(entries)} original, {len(migrated.days)} migrated")
        for day, record in entries:
            target = migrated.days.get(day) if isinstance(day, str) else None
            if target is None:
                errors.append(f"Missing date in migration: {day}")
                continue
            label = read_field(record, "event_label") if isinstance(record, Mapping) else None
            if target.event_label != label:
                errors.append(f"Event label mismatch for {day}: {label!r} -> {target.event_label!r}")
        return errors

    def migration_stats(self, source: AvailabilitySource) -> MigrationStats:
        if source is None:
            return MigrationStats(version=int(SchemaVersion.V2))
        if isinstance(source, AvailabilityData):
            version = int(source.schema_version)
            records = list(source.days.values())
        else:
            version = int(self.detect_version(source))
            records = list(ensure_maps_deserialized(read_field(source, "days")).values())

        full_days = partial = blocked_slots = 0
        for record in records:
            occupied = len(record.occupied_slots())
            blocked_slots += occupied
            if record.is_full_day or occupied == len(ALL_SLOTS):
                full_days += 1
            elif occupied:
                partial += 1
        return MigrationStats(
            version=version,
            total_dates=len(records),
            full_day_blocks=full_days,
            partial_blocks=partial,
            total_blocked_slots=blocked_slots,
        )


__all__ = [
    "MigrationService",
    "MigrationStats",
    "ensure_maps_deserialized",
    "is_v1_record",
    "is_v2_record",
    "normalize_record",
    "normalize_slot_map",
    "read_field",
]
