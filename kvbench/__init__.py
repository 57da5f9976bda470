"""
kvbench - a workload generator for benchmarking key-value stores.

The package drives a storage backend with a configurable mix of reads,
updates, inserts, scans and read-modify-writes from many threads:

- Thread-safe key, length and operation generators
- An acknowledged insert counter so readers only target committed keys
- Deterministic record values for end-to-end data integrity checks
- A threaded run harness with profiling, JSON results and a rich report

Storage backends plug in through the `Db` protocol; an in-memory reference
backend ships with the package.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from kvbench.config import Settings, WorkloadConfig, get_settings
from kvbench.domain.models import Operation, PhaseResult
from kvbench.errors import (
    BackendError,
    ConfigurationError,
    InsertRetryError,
    KvBenchError,
    VerificationError,
    WindowOverflowError,
)
from kvbench.infrastructure import AbstractDb, Db, InMemoryDb, get_backend_factory
from kvbench.orchestrator import RunConfig, run_benchmark, run_phase
from kvbench.utils.logging import configure_logging, get_logger
from kvbench.workload import CoreWorkload

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "WorkloadConfig",
    "get_settings",
    # Workload
    "CoreWorkload",
    "Operation",
    "PhaseResult",
    # Backends
    "Db",
    "AbstractDb",
    "InMemoryDb",
    "get_backend_factory",
    # Orchestration
    "RunConfig",
    "run_phase",
    "run_benchmark",
    # Errors
    "KvBenchError",
    "ConfigurationError",
    "BackendError",
    "VerificationError",
    "WindowOverflowError",
    "InsertRetryError",
    # Logging
    "configure_logging",
    "get_logger",
]
