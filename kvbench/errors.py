"""
Exception hierarchy for kvbench.

Configuration problems surface when a workload is constructed; everything else
is raised per operation to the worker that issued it.
"""

from __future__ import annotations


class KvBenchError(Exception):
    """Base class for all kvbench errors."""


class ConfigurationError(KvBenchError, ValueError):
    """Invalid or unsupported workload configuration."""


class GeneratorStateError(KvBenchError):
    """A generator was used in a state where its result is undefined."""


class BackendError(KvBenchError):
    """Failure reported by the storage backend under test."""


class VerificationError(KvBenchError):
    """A read returned data that does not match what was written."""


class WindowOverflowError(KvBenchError):
    """
    Too many key numbers are issued but not yet acknowledged.

    The acknowledgment window is full (or a value was acknowledged twice), so
    the watermark can no longer be advanced safely. Workers must stop.
    """


class InsertRetryError(KvBenchError):
    """An insert kept failing after the configured number of retries."""


__all__ = [
    "KvBenchError",
    "ConfigurationError",
    "GeneratorStateError",
    "BackendError",
    "VerificationError",
    "WindowOverflowError",
    "InsertRetryError",
]
