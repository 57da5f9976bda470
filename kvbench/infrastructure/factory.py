"""
Backend factory for kvbench.

A run needs one backend instance per worker thread. `get_backend_factory`
returns a zero-argument callable that builds those instances; instances built
by the same factory share whatever state the backend keeps (for the in-memory
backend, the record store).
"""

from __future__ import annotations

from typing import Callable, Dict, List

from kvbench.infrastructure.db import Db
from kvbench.infrastructure.memory import InMemoryDb, MemoryStore


def _memory_factory() -> Callable[[], Db]:
    store = MemoryStore()
    return lambda: InMemoryDb(store)


def _backend_factories() -> Dict[str, Callable[[], Callable[[], Db]]]:
    """Registry of available backends."""
    return {
        "memory": _memory_factory,
    }


def available_backends() -> List[str]:
    """List available backend names."""
    return sorted(_backend_factories().keys())


def get_backend_factory(name: str) -> Callable[[], Db]:
    """
    Resolve a backend name to a per-worker instance factory.

    Raises
    ------
    ValueError
        If no backend is registered under `name`.
    """
    factories = _backend_factories()
    if name not in factories:
        raise ValueError(f"Unknown backend '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


__all__ = ["available_backends", "get_backend_factory"]
