from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional


class FreeslotError(Exception):
    """Base class for all engine errors."""


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationError(FreeslotError):
    """Raised when a payload, query or request does not match the expected shape."""

    def __init__(self, message: str, errors: Optional[Iterable[FieldError]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors: List[FieldError] = list(errors or ())

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(f"{field}: {message}", [FieldError(field, message)])

    @classmethod
    def from_pydantic(cls, exc: Any, *, prefix: str = "") -> "ValidationError":
        errors = []
        for item in exc.errors():
            location = ".".join(str(part) for part in item.get("loc", ()))
            if prefix:
                location = f"{prefix}.{location}" if location else prefix
            errors.append(FieldError(location or "__root__", str(item.get("msg", "invalid value"))))
        summary = "; ".join(f"{error.field}: {error.message}" for error in errors)
        return cls(f"Validation failed: {summary}", errors)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": [error.to_dict() for error in self.errors]}


class MigrationError(FreeslotError):
    """Raised when a day record cannot be normalized to a known shape."""


class UnsupportedDowngradeError(MigrationError):
    """Raised when a slot pattern has no v1 equivalent."""

    def __init__(self, day: str, occupied: Iterable[str]) -> None:
        self.day = day
        self.occupied = sorted(occupied)
        super().__init__(
            f"Cannot downgrade {day}: occupied slots {', '.join(self.occupied)} "
            "do not align with a full, AM or PM block."
        )


class StorageError(FreeslotError):
    """Raised when encoding or writing to the key-value store fails."""


class InterpretationError(FreeslotError):
    """Raised when a free-text request cannot be turned into a query."""


class ConfigurationError(FreeslotError):
    """Raised at startup when required configuration is missing."""


__all__ = [
    "ConfigurationError",
    "FieldError",
    "FreeslotError",
    "InterpretationError",
    "MigrationError",
    "StorageError",
    "UnsupportedDowngradeError",
    "ValidationError",
]
