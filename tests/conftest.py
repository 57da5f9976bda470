"""
Pytest configuration for kvbench.

Provides fixtures for:
- Seeded randomness so workload draws are reproducible
- Small workload configurations
- In-memory backends sharing one record store
- Settings isolation from the developer's environment
"""

from __future__ import annotations

import logging
import os
import random
from pathlib import Path
from typing import Callable, Generator

import pytest

from kvbench.config import WorkloadConfig, get_settings
from kvbench.infrastructure.memory import InMemoryDb, MemoryStore

DEFAULT_SEED = 1234
SMALL_RECORD_COUNT = 100


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """
    Keep `KVBENCH_*` variables of the caller out of the tests and write results to a temp dir.
    """
    for name in list(os.environ):
        if name.startswith("KVBENCH_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("KVBENCH_RESULTS_DIR", str(tmp_path / "results"))
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    root = logging.getLogger()
    level = root.level
    yield
    # CLI commands install a console handler on the root logger.
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)
    get_settings.cache_clear()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(DEFAULT_SEED)


@pytest.fixture
def small_config() -> WorkloadConfig:
    """Ordered keys over a small, bounded key space."""
    return WorkloadConfig(
        record_count=SMALL_RECORD_COUNT,
        field_count=3,
        max_field_length=16,
        insert_order="ordered",
        zero_padding=8,
    )


@pytest.fixture
def integrity_config() -> WorkloadConfig:
    return WorkloadConfig(
        record_count=SMALL_RECORD_COUNT,
        field_count=3,
        max_field_length=20,
        data_integrity=True,
        read_proportion=1.0,
        update_proportion=0.0,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def memory_db(store: MemoryStore) -> InMemoryDb:
    return InMemoryDb(store)


@pytest.fixture
def db_factory(store: MemoryStore) -> Callable[[], InMemoryDb]:
    """Per-worker backend factory whose instances share the `store` fixture."""
    return lambda: InMemoryDb(store)
