from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from ..interpreter import InterpretationResult
from ..query import AvailabilityQueryEngine, QueryResult
from ..query.schema import QueryInput
from .availability import AvailabilityService
from .context import ServiceContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QueryService:
    """Glue between free-text interpretation and the query engine."""

    context: ServiceContext
    availability: AvailabilityService

    def interpret(self, text: str, *, today: Optional[date] = None, force_fallback: bool = False) -> InterpretationResult:
        return self.context.interpreter.interpret(text, today=today, force_fallback=force_fallback)

    def execute(self, query: QueryInput) -> QueryResult:
        return AvailabilityQueryEngine(self.availability.data).execute(query)

    def ask(self, text: str, *, today: Optional[date] = None, force_fallback: bool = False) -> Dict[str, Any]:
        interpretation = self.interpret(text, today=today, force_fallback=force_fallback)
        result = self.execute(interpretation.query)
        logger.info(
            "Answered %r via %s interpreter with %d item(s)",
            text,
            interpretation.strategy,
            len(result.items),
        )
        payload = result.to_dict()
        payload["strategy"] = interpretation.strategy
        if interpretation.warning:
            payload["warning"] = interpretation.warning
        return payload


__all__ = ["QueryService"]
