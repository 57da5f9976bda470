"""
In-memory reference backend.

Records live in a `MemoryStore` shared by every `InMemoryDb` handed to the
workers of one run, so a key inserted by one worker is visible to all others.
Values are materialised to bytes on write.
"""

from __future__ import annotations

import bisect
import threading
from typing import Any, Dict, List, Mapping, Optional, Set

from kvbench.domain.values import Value, read_value
from kvbench.errors import BackendError
from kvbench.infrastructure.db import AbstractDb


class MemoryStore:
    """
    Thread-safe table -> key -> fields storage with keys kept in sort order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: Dict[str, Dict[str, Dict[str, bytes]]] = {}
        self._sorted_keys: Dict[str, List[str]] = {}

    def record_count(self, table: str) -> int:
        with self._lock:
            return len(self._tables.get(table, {}))

    def put(self, table: str, key: str, fields: Dict[str, bytes], *, must_exist: bool) -> None:
        with self._lock:
            records = self._tables.setdefault(table, {})
            record = records.get(key)
            if record is None:
                if must_exist:
                    raise BackendError(f"record {table}/{key} not found")
                records[key] = dict(fields)
                bisect.insort(self._sorted_keys.setdefault(table, []), key)
            else:
                record.update(fields)

    def get(self, table: str, key: str) -> Dict[str, bytes]:
        with self._lock:
            record = self._tables.get(table, {}).get(key)
            if record is None:
                raise BackendError(f"record {table}/{key} not found")
            return dict(record)

    def range(self, table: str, start_key: str, count: int) -> List[Dict[str, bytes]]:
        with self._lock:
            keys = self._sorted_keys.get(table, [])
            start = bisect.bisect_left(keys, start_key)
            records = self._tables.get(table, {})
            return [dict(records[key]) for key in keys[start : start + count]]

    def remove(self, table: str, key: str) -> None:
        with self._lock:
            records = self._tables.get(table, {})
            if records.pop(key, None) is None:
                raise BackendError(f"record {table}/{key} not found")
            keys = self._sorted_keys[table]
            del keys[bisect.bisect_left(keys, key)]


def _materialise(values: Mapping[str, Value]) -> Dict[str, bytes]:
    return {field: read_value(value) for field, value in values.items()}


def _select(record: Dict[str, bytes], fields: Set[str]) -> Dict[str, bytes]:
    if not fields:
        return dict(record)
    return {field: record[field] for field in fields if field in record}


class InMemoryDb(AbstractDb):
    """
    Backend over a shared `MemoryStore`.

    Insert of an existing key overwrites its fields; update and delete of a
    missing key raise `BackendError`, as does reading one.
    """

    name: str = "memory"

    def __init__(self, store: Optional[MemoryStore] = None) -> None:
        self.store = store or MemoryStore()

    def insert(self, table: str, key: str, values: Mapping[str, Value]) -> None:
        self.store.put(table, key, _materialise(values), must_exist=False)

    def read(self, table: str, key: str, fields: Set[str]) -> Dict[str, Any]:
        return _select(self.store.get(table, key), fields)

    def update(self, table: str, key: str, values: Mapping[str, Value]) -> None:
        self.store.put(table, key, _materialise(values), must_exist=True)

    def scan(self, table: str, start_key: str, count: int, fields: Set[str]) -> Dict[str, List[Any]]:
        result: Dict[str, List[Any]] = {}
        for record in self.store.range(table, start_key, count):
            for field, value in _select(record, fields).items():
                result.setdefault(field, []).append(value)
        return result

    def delete(self, table: str, key: str) -> None:
        self.store.remove(table, key)


__all__ = ["MemoryStore", "InMemoryDb"]
