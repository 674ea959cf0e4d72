from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..config import AppSettings, get_settings
from ..errors import InterpretationError
from .base import (
    STRATEGY_FALLBACK,
    STRATEGY_REMOTE,
    InterpretationResult,
    QueryInterpreter,
    normalize_request,
)
from .fallback import FallbackInterpreter
from .remote import RemoteInterpreter

logger = logging.getLogger(__name__)


class InterpreterChain:
    """Single call site that tries the primary interpreter and falls back to keyword parsing."""

    def __init__(
        self,
        primary: Optional[QueryInterpreter] = None,
        fallback: Optional[QueryInterpreter] = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback or FallbackInterpreter()

    @property
    def offline(self) -> bool:
        return self.primary is None

    def interpret(self, text: str, *, today: Optional[date] = None, force_fallback: bool = False) -> InterpretationResult:
        request = normalize_request(text)
        anchor = today or date.today()

        warning: Optional[str] = None
        if self.primary is not None and not force_fallback:
            try:
                query = self.primary.interpret(request, today=anchor)
                return InterpretationResult(query=query, strategy=STRATEGY_REMOTE)
            except InterpretationError as exc:
                logger.warning("Primary interpreter failed, using fallback parser: %s", exc)
                warning = f"Interpreted with the offline parser: {exc}"

        query = self.fallback.interpret(request, today=anchor)
        return InterpretationResult(query=query, strategy=STRATEGY_FALLBACK, warning=warning)


def build_interpreter(settings: Optional[AppSettings] = None, *, offline: Optional[bool] = None) -> InterpreterChain:
    """Create the interpreter chain; the remote path requires an API key unless running offline."""

    settings = settings or get_settings()
    use_offline = settings.llm.offline if offline is None else offline
    if use_offline:
        logger.info("Query interpreter running offline with the keyword parser")
        return InterpreterChain(primary=None)
    return InterpreterChain(primary=RemoteInterpreter(settings.llm))


__all__ = ["InterpreterChain", "build_interpreter"]
