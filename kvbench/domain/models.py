"""
Domain models for kvbench.

Defines the operation kinds a transaction can perform and the result models
the run harness produces for each phase.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class Operation(str, Enum):
    """Kinds of operation a transaction can perform."""

    READ = "read"
    UPDATE = "update"
    INSERT = "insert"
    SCAN = "scan"
    READ_MODIFY_WRITE = "read_modify_write"


class OperationCounts(BaseModel):
    """Successes and failures for one operation kind."""

    ok: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.ok + self.failed


class PhaseResult(BaseModel):
    """
    Summary of one load or run phase.
    """

    phase: str = Field(..., description="Either 'load' or 'run'.")
    threads: int = Field(..., ge=1)
    operations: int = Field(..., ge=0, description="Operations attempted.")
    duration_seconds: float = Field(0.0, ge=0.0)
    throughput_ops_per_sec: float = Field(0.0, ge=0.0)
    counts: Dict[str, OperationCounts] = Field(default_factory=dict)
    errors: Dict[str, int] = Field(
        default_factory=dict, description="Failures grouped by exception type."
    )
    stopped_workers: int = Field(0, ge=0, description="Workers halted by fatal errors.")
    watermark: Optional[int] = Field(None, description="Transaction insert watermark at the end.")
    peak_rss_bytes: Optional[int] = None
    cpu_percent: Optional[float] = None

    @property
    def failed(self) -> int:
        return sum(c.failed for c in self.counts.values())


__all__ = ["Operation", "OperationCounts", "PhaseResult"]
