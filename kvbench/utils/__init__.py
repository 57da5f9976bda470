"""
Utilities package for kvbench.

Exports shared helpers for logging, profiling, and hashing.
Keep this package lightweight and free of workload-specific logic.
"""

from kvbench.utils.hashing import fnv1_64, fnvhash64
from kvbench.utils.logging import configure_logging, get_logger
from kvbench.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
    "fnv1_64",
    "fnvhash64",
]
