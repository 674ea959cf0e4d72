"""Configuration models and helpers."""

from __future__ import annotations

from .settings import (
    INTERPRETER_OFFLINE,
    INTERPRETER_REMOTE,
    AppSettings,
    LlmSettings,
    LoggingSettings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "INTERPRETER_OFFLINE",
    "INTERPRETER_REMOTE",
    "LlmSettings",
    "LoggingSettings",
    "StorageSettings",
    "get_settings",
]
