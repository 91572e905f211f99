"""Latest-value table access for vision devices.

Vision coprocessors publish their newest results into named tables of
key/value entries. Reads never block: they return whatever value was last
published, or the caller's default.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Mapping


class TableSource(ABC):
    @abstractmethod
    def get(self, table: str, key: str, default: Any = None) -> Any: ...

    @abstractmethod
    def put(self, table: str, key: str, value: Any) -> None: ...

    def get_number(self, table: str, key: str, default: float = 0.0) -> float:
        value = self.get(table, key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def get_string(self, table: str, key: str, default: str = "") -> str:
        value = self.get(table, key, default)
        return value if isinstance(value, str) else default

    def get_array(self, table: str, key: str) -> list[float]:
        value = self.get(table, key, None)
        if not isinstance(value, (list, tuple)):
            return []
        try:
            return [float(v) for v in value]
        except (TypeError, ValueError):
            return []


class InMemoryTables(TableSource):
    """Thread-safe dictionary of tables, fed from recordings or tests."""

    def __init__(self, initial: Mapping[str, Mapping[str, Any]] | None = None):
        self._lock = threading.Lock()
        self._tables: dict[str, dict[str, Any]] = {}
        if initial:
            self.update(initial)

    def get(self, table: str, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._tables.get(table, {}).get(key, default)

    def put(self, table: str, key: str, value: Any) -> None:
        with self._lock:
            self._tables.setdefault(table, {})[key] = value

    def update(self, snapshot: Mapping[str, Mapping[str, Any]]) -> None:
        """Merge a ``{table: {key: value}}`` snapshot over the current values."""
        with self._lock:
            for table, entries in snapshot.items():
                self._tables.setdefault(table, {}).update(entries)

    def clear(self, table: str) -> None:
        with self._lock:
            self._tables.pop(table, None)
