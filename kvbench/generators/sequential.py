"""Sequential numeric generator that cycles through [start, end] forever."""

from __future__ import annotations

import threading
from typing import Generic

from kvbench.errors import ConfigurationError
from kvbench.generators.abstract import AbstractNumberGenerator, N


class SequentialGenerator(AbstractNumberGenerator, Generic[N]):
    """
    Generate start, start+1, ..., end, start, start+1, ... (end included).

    The internal tally is shared between threads; each call to `next` consumes
    exactly one step of the cycle.
    """

    def __init__(self, start: N, end: N) -> None:
        if end < start:
            raise ConfigurationError(f"sequential generator end {end} is below start {start}")
        self._start = start
        self._end = end
        self._span = end - start + 1
        self._tally = 0
        self._lock = threading.Lock()

    def next(self) -> N:
        with self._lock:
            tally = self._tally
            self._tally += 1
        return self._start + (tally % self._span)

    def mean(self) -> float:
        return (float(self._start) + float(self._end)) / 2.0

    def _params(self) -> dict:
        return {"start": self._start, "end": self._end}


__all__ = ["SequentialGenerator"]
