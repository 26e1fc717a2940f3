"""Summary: Key-value storage interface for persisted dashboard state.

Importance: Lets credential and conversation logic run against any backend.
Alternatives: Read and write a SQLite database directly from each component.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any


logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Summary: Abstract string key-value store.

    Importance: Mirrors browser storage semantics (get/set/remove) for the sync layer.
    Alternatives: Expose a richer document store interface.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Summary: Return the stored value or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Summary: Store a value, replacing any previous one."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Summary: Delete a key. Missing keys are ignored."""


class MemoryKeyValueStore(KeyValueStore):
    """Summary: In-process key-value store.

    Importance: Keeps tests isolated from the filesystem.
    Alternatives: Use a temporary SQLite file per test.
    """

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


def read_json(store: KeyValueStore, key: str) -> Any | None:
    """Summary: Read and decode a JSON value from a store.

    Importance: Treats corrupted values as absent instead of failing the caller.
    Alternatives: Raise a corruption error to the UI.
    """

    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unparsable value stored under %s.", key)
        return None


def write_json(store: KeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value))
