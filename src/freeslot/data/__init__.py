"""Persistence layer: string key-value backends and the availability store."""

from __future__ import annotations

from .kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .store import AvailabilityStore

__all__ = [
    "AvailabilityStore",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
]
