"""
Domain package for kvbench.

Exports the operation kinds, record value streams and result models used by
the workload engine and the run harness. Keep this package focused on data
definitions.
"""

from kvbench.domain.models import Operation, OperationCounts, PhaseResult
from kvbench.domain.values import DeterministicValue, RandomBytes, Value, read_value

__all__ = [
    "Operation",
    "OperationCounts",
    "PhaseResult",
    "DeterministicValue",
    "RandomBytes",
    "Value",
    "read_value",
]
