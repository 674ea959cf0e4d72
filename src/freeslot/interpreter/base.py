from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from ..errors import ValidationError
from ..query import AvailabilityQuery

MAX_REQUEST_LENGTH = 500

STRATEGY_REMOTE = "remote"
STRATEGY_FALLBACK = "fallback"


def normalize_request(text: Any) -> str:
    """Trim a free-text request and enforce the length bounds."""

    if not isinstance(text, str):
        raise ValidationError.for_field("text", "request must be a string")
    cleaned = text.strip()
    if not cleaned:
        raise ValidationError.for_field("text", "request must not be empty")
    if len(cleaned) > MAX_REQUEST_LENGTH:
        raise ValidationError.for_field("text", f"request must be at most {MAX_REQUEST_LENGTH} characters")
    return cleaned


class QueryInterpreter(ABC):
    """Turns a free-text availability request into an :class:`AvailabilityQuery`."""

    name: str = "interpreter"

    @abstractmethod
    def interpret(self, text: str, *, today: date) -> AvailabilityQuery:
        """Return a validated query or raise :class:`~freeslot.errors.InterpretationError`."""


@dataclass(frozen=True)
class InterpretationResult:
    query: AvailabilityQuery
    strategy: str
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"query": self.query.to_payload(), "strategy": self.strategy}
        if self.warning:
            payload["warning"] = self.warning
        return payload


__all__ = [
    "InterpretationResult",
    "MAX_REQUEST_LENGTH",
    "QueryInterpreter",
    "STRATEGY_FALLBACK",
    "STRATEGY_REMOTE",
    "normalize_request",
]
