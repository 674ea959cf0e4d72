"""Pydantic shapes that external availability documents must match before they are trusted."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..domain import LegacyStatus, is_valid_date_key, own_items
from ..domain.slots import is_valid_slot
from ..errors import FieldError, ValidationError

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LegacyDayPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    status: LegacyStatus
    event_label: Optional[str] = Field(
        default=None,
        max_length=200,
        validation_alias=AliasChoices("event_label", "eventName", "eventLabel"),
    )


class SlotDayPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    slots: Union[Dict[str, StrictBool], List[Tuple[str, StrictBool]]]
    full_day_block: Optional[StrictBool] = Field(
        default=False,
        validation_alias=AliasChoices("full_day_block", "fullDayBlock"),
    )
    event_label: Optional[str] = Field(
        default=None,
        max_length=200,
        validation_alias=AliasChoices("event_label", "eventName", "eventLabel"),
    )

    @field_validator("slots")
    @classmethod
    def _known_slots(cls, value: Any) -> Any:
        keys = value.keys() if isinstance(value, dict) else [slot for slot, _ in value]
        unknown = sorted(key for key in keys if not is_valid_slot(key))
        if unknown:
            raise ValueError(f"unknown slot labels: {', '.join(unknown)}")
        return value


class AvailabilityDocumentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schema_version: Literal[1, 2] = Field(
        default=1,
        validation_alias=AliasChoices("schema_version", "version"),
    )
    owner_id: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=200,
        validation_alias=AliasChoices("owner_id", "ownerId", "instructorId"),
    )
    last_modified: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("last_modified", "lastModified"),
    )
    days: Union[Dict[str, Dict[str, Any]], List[Dict[str, Any]]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("days", "blockedDates"),
    )


class OwnerProfilePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, max_length=200)
    display_name: str = Field(
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("display_name", "displayName", "name"),
    )
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    slug: Optional[str] = Field(default=None, pattern=r"^[a-z0-9][a-z0-9-]*$", max_length=100)
    timezone: Optional[str] = Field(default=None, max_length=64)
    is_public: StrictBool = Field(default=False, validation_alias=AliasChoices("is_public", "isPublic"))


class ExportEnvelopePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    export_version: str = Field(default="1.0", validation_alias=AliasChoices("export_version", "version"))
    exported_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("exported_at", "exportedAt"),
    )
    availability: Optional[Dict[str, Any]] = None
    profile: Optional[Dict[str, Any]] = None


def strip_prototype_keys(value: Any) -> Any:
    """Rebuild decoded JSON keeping only own, non-prototype keys at every level."""

    if isinstance(value, Mapping):
        return {key: strip_prototype_keys(item) for key, item in own_items(value)}
    if isinstance(value, list):
        return [strip_prototype_keys(item) for item in value]
    return value


def _day_entries(days: Union[Dict[str, Dict[str, Any]], List[Dict[str, Any]]]) -> List[Tuple[str, Any, Any]]:
    if isinstance(days, dict):
        return [(key, key, record) for key, record in days.items()]
    return [(str(index), record.get("date"), record) for index, record in enumerate(days)]


def validate_availability_document(document: Any, *, prefix: str = "") -> AvailabilityDocumentPayload:
    """Raise :class:`ValidationError` unless ``document`` is a well-formed v1 or v2 document."""

    def _path(*parts: str) -> str:
        return ".".join(part for part in (prefix, *parts) if part)

    if not isinstance(document, Mapping):
        raise ValidationError.for_field(prefix or "__root__", "must be an object")
    try:
        parsed = AvailabilityDocumentPayload.model_validate(document)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, prefix=prefix) from exc

    errors: List[FieldError] = []
    if parsed.schema_version == 2 and isinstance(parsed.days, list):
        errors.append(FieldError(_path("days"), "schema version 2 stores days as an object keyed by date"))

    for position, day, record in _day_entries(parsed.days):
        location = _path("days", position)
        if not is_valid_date_key(day):
            errors.append(FieldError(location, "day key must be a valid ISO date (YYYY-MM-DD)"))
            continue
        model = SlotDayPayload if "slots" in record else LegacyDayPayload
        try:
            model.model_validate(record)
        except PydanticValidationError as exc:
            errors.extend(ValidationError.from_pydantic(exc, prefix=location).errors)

    if errors:
        summary = "; ".join(f"{error.field}: {error.message}" for error in errors)
        raise ValidationError(f"Invalid availability document: {summary}", errors)
    return parsed


def validate_profile(record: Any, *, prefix: str = "profile") -> OwnerProfilePayload:
    try:
        return OwnerProfilePayload.model_validate(record)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc, prefix=prefix) from exc


def validate_envelope(document: Mapping[str, Any]) -> ExportEnvelopePayload:
    try:
        return ExportEnvelopePayload.model_validate(document)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


__all__ = [
    "AvailabilityDocumentPayload",
    "ExportEnvelopePayload",
    "LegacyDayPayload",
    "OwnerProfilePayload",
    "SlotDayPayload",
    "strip_prototype_keys",
    "validate_availability_document",
    "validate_envelope",
    "validate_profile",
]
