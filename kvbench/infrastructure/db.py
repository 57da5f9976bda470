"""
Storage backend interface consumed by the workload engine.

Each worker thread gets its own backend instance; `init()` and `cleanup()` are
called once per instance. Backends report failures by raising, preferably
`BackendError`. The semantics of insert/update/delete (durability, whether an
update of a missing key succeeds, ...) are left to each backend; document the
choice when publishing results.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Mapping, Protocol, Set, runtime_checkable

from kvbench.domain.values import Value


@runtime_checkable
class Db(Protocol):
    """
    Operations a storage backend must support.

    Field sets passed to `read` and `scan` may be empty, meaning "all fields".
    Returned values may be readable streams, bytes, or strings.
    """

    def init(self) -> None:
        """Initialize any state for this backend instance."""
        ...

    def cleanup(self) -> None:
        """Release any state held by this backend instance."""
        ...

    def insert(self, table: str, key: str, values: Mapping[str, Value]) -> None:
        """Insert a record with the given field values."""
        ...

    def read(self, table: str, key: str, fields: Set[str]) -> Dict[str, Any]:
        """Read the requested fields of one record."""
        ...

    def update(self, table: str, key: str, values: Mapping[str, Value]) -> None:
        """Overwrite the given fields of an existing record."""
        ...

    def scan(
        self, table: str, start_key: str, count: int, fields: Set[str]
    ) -> Dict[str, List[Any]]:
        """
        Read up to `count` records starting at `start_key`.

        Returns, for every field, the values of the scanned records in key order.
        """
        ...

    def delete(self, table: str, key: str) -> None:
        """Delete one record."""
        ...


class AbstractDb(abc.ABC):
    """
    Optional ABC helper for class-based backends.

    `init` and `cleanup` default to no-ops.
    """

    name: str

    def init(self) -> None:
        return None

    def cleanup(self) -> None:
        return None

    @abc.abstractmethod
    def insert(self, table: str, key: str, values: Mapping[str, Value]) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def read(self, table: str, key: str, fields: Set[str]) -> Dict[str, Any]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, table: str, key: str, values: Mapping[str, Value]) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def scan(
        self, table: str, start_key: str, count: int, fields: Set[str]
    ) -> Dict[str, List[Any]]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, table: str, key: str) -> None:  # pragma: no cover
        raise NotImplementedError


__all__ = ["Db", "AbstractDb"]
