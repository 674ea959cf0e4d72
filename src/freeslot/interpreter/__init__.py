"""Free-text request interpretation: remote language model with a keyword fallback."""

from __future__ import annotations

from .base import MAX_REQUEST_LENGTH, InterpretationResult, QueryInterpreter, normalize_request
from .chain import InterpreterChain, build_interpreter
from .fallback import FallbackInterpreter
from .remote import RemoteInterpreter

__all__ = [
    "FallbackInterpreter",
    "InterpretationResult",
    "InterpreterChain",
    "MAX_REQUEST_LENGTH",
    "QueryInterpreter",
    "RemoteInterpreter",
    "build_interpreter",
    "normalize_request",
]
