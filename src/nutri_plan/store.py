"""Small persisted key-value store for local draft state (e.g. prep checklists)."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

KEY_PREFIX = "nutri-plan::"

Listener = Callable[[Any], None]


class ValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def subscribe(self, key: str, callback: Listener) -> Callable[[], None]: ...


class MemoryStore:
    """In-process store. Values are deep-copied in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._listeners: dict[str, list[Listener]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        full = KEY_PREFIX + key
        if full not in self._data:
            return default
        return copy.deepcopy(self._data[full])

    def set(self, key: str, value: Any) -> None:
        self._data[KEY_PREFIX + key] = copy.deepcopy(value)
        self._notify(key, value)

    def subscribe(self, key: str, callback: Listener) -> Callable[[], None]:
        self._listeners.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _notify(self, key: str, value: Any) -> None:
        for cb in list(self._listeners.get(key, [])):
            cb(copy.deepcopy(value))


class JsonFileStore(MemoryStore):
    """Store backed by a single JSON object on disk.

    The file is re-read on every ``get`` so separate processes see each
    other's writes. Missing or corrupt content reads as empty.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path

    def _load(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable store file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        self._data = self._load()
        return super().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[KEY_PREFIX + key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        self._data = data
        self._notify(key, value)
