from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Union

import orjson

from ..domain import AvailabilityData, OwnerProfile, SchemaVersion
from ..domain.models import format_timestamp, utc_now
from ..errors import MigrationError, StorageError, ValidationError
from ..services.migration import MigrationService
from .kv import KeyValueStore
from .schemas import strip_prototype_keys, validate_availability_document, validate_envelope, validate_profile

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
DEFAULT_AVAILABILITY_KEY = "freeslot_availability_data"
DEFAULT_PROFILE_KEY = "freeslot_owner_profile"

Payload = Union[str, bytes, Mapping[str, Any]]


class AvailabilityStore:
    """Persists availability data and the owner profile as JSON strings in a key-value store.

    Passing ``backend=None`` models a context without a storage medium: reads
    return ``None`` and writes succeed without effect.
    """

    def __init__(
        self,
        backend: Optional[KeyValueStore],
        *,
        migration: Optional[MigrationService] = None,
        availability_key: str = DEFAULT_AVAILABILITY_KEY,
        profile_key: str = DEFAULT_PROFILE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._backend = backend
        self._migration = migration or MigrationService(clock=clock)
        self._availability_key = availability_key
        self._profile_key = profile_key
        self._clock = clock
        self._migration_in_progress = False

    @property
    def available(self) -> bool:
        return self._backend is not None

    @property
    def migration(self) -> MigrationService:
        return self._migration

    def _empty(self) -> AvailabilityData:
        return AvailabilityData.empty(self._migration.default_owner_id, now=self._clock())

    # ------------------------------------------------------------------ availability

    def load(self) -> Optional[AvailabilityData]:
        if self._backend is None:
            logger.debug("No storage backend; nothing to load")
            return None
        raw = self._backend.get_item(self._availability_key)
        if raw is None:
            return None

        try:
            document = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.error("Stored availability data could not be decoded; starting empty")
            return self._empty()
        if not isinstance(document, dict):
            logger.error("Stored availability data is not an object; starting empty")
            return self._empty()

        try:
            version = self._migration.detect_version(document)
            data = self._migration.migrate(document)
        except MigrationError as exc:
            logger.error("Stored availability data could not be migrated: %s", exc)
            return self._empty()

        if version is not SchemaVersion.V2 and not self._migration_in_progress:
            self._write_back(data, version)
        return data

    def _write_back(self, data: AvailabilityData, version: SchemaVersion) -> None:
        self._migration_in_progress = True
        try:
            self.save(data)
            logger.info("Migrated stored availability data from schema version %s", int(version))
        except StorageError as exc:
            logger.warning("Migrated availability data could not be written back: %s", exc)
        finally:
            self._migration_in_progress = False

    def save(self, data: AvailabilityData) -> None:
        if self._backend is None:
            logger.debug("No storage backend; skipping save")
            return
        current = self._migration.migrate(data)
        try:
            payload = orjson.dumps(current.to_document()).decode("utf-8")
        except TypeError as exc:
            raise StorageError(f"Availability data could not be encoded: {exc}") from exc
        try:
            self._backend.set_item(self._availability_key, payload)
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Availability data could not be written: {exc}") from exc

    # ------------------------------------------------------------------ import / export

    def import_data(self, payload: Payload, *, merge: bool = False) -> AvailabilityData:
        """Validate an exported file (or a bare availability document) and store it."""

        document = strip_prototype_keys(_decode_payload(payload))
        if not isinstance(document, dict):
            raise ValidationError.for_field("__root__", "import payload must be a JSON object")

        profile: Optional[OwnerProfile] = None
        if "availability" in document:
            envelope = validate_envelope(document)
            if envelope.availability is None:
                raise ValidationError.for_field("availability", "export contains no availability data")
            availability = envelope.availability
            validate_availability_document(availability, prefix="availability")
            if envelope.profile is not None:
                profile = OwnerProfile(**validate_profile(envelope.profile).model_dump())
        else:
            availability = document
            validate_availability_document(availability)

        imported = self._migration.migrate(availability)
        if merge:
            existing = self.load() or self._empty()
            existing.days.update(imported.days)
            existing.last_modified = self._clock()
            imported = existing

        self.save(imported)
        if profile is not None:
            self.save_profile(profile)
        logger.info("Imported %d day records (merge=%s)", len(imported.days), merge)
        return imported

    def export_data(self) -> Dict[str, Any]:
        data = self.load()
        profile = self.load_profile()
        return {
            "export_version": EXPORT_VERSION,
            "exported_at": format_timestamp(self._clock()),
            "availability": data.to_document() if data is not None else None,
            "profile": profile.to_record() if profile is not None else None,
        }

    def export_json(self) -> str:
        return orjson.dumps(self.export_data(), option=orjson.OPT_INDENT_2).decode("utf-8")

    # ------------------------------------------------------------------ profile

    def load_profile(self) -> Optional[OwnerProfile]:
        if self._backend is None:
            return None
        raw = self._backend.get_item(self._profile_key)
        if raw is None:
            return None
        try:
            record = orjson.loads(raw)
            return OwnerProfile(**validate_profile(strip_prototype_keys(record)).model_dump())
        except (orjson.JSONDecodeError, ValidationError) as exc:
            logger.error("Stored owner profile is unreadable: %s", exc)
            return None

    def save_profile(self, profile: OwnerProfile) -> None:
        validate_profile(profile.to_record())
        if self._backend is None:
            return
        try:
            self._backend.set_item(self._profile_key, orjson.dumps(profile.to_record()).decode("utf-8"))
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Owner profile could not be written: {exc}") from exc

    def clear_all(self) -> None:
        if self._backend is None:
            return
        try:
            self._backend.remove_item(self._availability_key)
            self._backend.remove_item(self._profile_key)
        except OSError as exc:
            raise StorageError(f"Stored data could not be cleared: {exc}") from exc


def _decode_payload(payload: Payload) -> Any:
    if isinstance(payload, Mapping):
        return payload
    if isinstance(payload, (str, bytes)):
        try:
            return orjson.loads(payload)
        except orjson.JSONDecodeError as exc:
            raise ValidationError.for_field("__root__", f"payload is not valid JSON: {exc}") from exc
    raise ValidationError.for_field("__root__", f"unsupported payload type {type(payload).__name__}")


__all__ = ["AvailabilityStore", "DEFAULT_AVAILABILITY_KEY", "DEFAULT_PROFILE_KEY", "EXPORT_VERSION"]
