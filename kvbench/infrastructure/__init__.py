"""
Infrastructure package for kvbench.

Holds the storage backend interface and the backends that ship with the
package. Keep this layer focused on I/O, decoupled from workload logic.
"""

from kvbench.infrastructure.db import AbstractDb, Db
from kvbench.infrastructure.factory import available_backends, get_backend_factory
from kvbench.infrastructure.memory import InMemoryDb, MemoryStore

__all__ = [
    "Db",
    "AbstractDb",
    "InMemoryDb",
    "MemoryStore",
    "available_backends",
    "get_backend_factory",
]
