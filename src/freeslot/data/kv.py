from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

import orjson

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """String-only key-value medium, shaped after browser local storage."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


@dataclass
class MemoryKeyValueStore:
    items: Dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Values must be strings, got {type(value).__name__}")
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileKeyValueStore:
    """Keeps every entry as a string value inside one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._items: Optional[Dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_materialized(self) -> Dict[str, str]:
        if self._items is not None:
            return self._items
        self._items = {}
        if not self._path.exists():
            return self._items
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            logger.error("Cannot read key-value file %s (%s); starting with an empty store", self._path, exc)
            return self._items
        if not raw:
            return self._items
        try:
            loaded = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.error("Key-value file %s is not valid JSON; starting with an empty store", self._path)
            return self._items
        if not isinstance(loaded, dict):
            logger.error("Key-value file %s does not hold an object; starting with an empty store", self._path)
            return self._items
        self._items = {key: value for key, value in loaded.items() if isinstance(value, str)}
        return self._items

    def _persist(self) -> None:
        items = self._ensure_materialized()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(items, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)
        self._path.write_bytes(payload + b"\n")

    def get_item(self, key: str) -> Optional[str]:
        return self._ensure_materialized().get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Values must be strings, got {type(value).__name__}")
        self._ensure_materialized()[key] = value
        self._persist()

    def remove_item(self, key: str) -> None:
        items = self._ensure_materialized()
        if key in items:
            del items[key]
            self._persist()


__all__ = ["FileKeyValueStore", "KeyValueStore", "MemoryKeyValueStore"]
