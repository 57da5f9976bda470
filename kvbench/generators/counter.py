"""Atomic monotonic counter."""

from __future__ import annotations

import itertools
from typing import Generic, Optional

from kvbench.errors import GeneratorStateError
from kvbench.generators.abstract import N


class CounterGenerator(Generic[N]):
    """
    Issue start, start+1, start+2, ... with no wraparound.

    Every value is issued exactly once even when `next` is called from many
    threads at the same time: stepping an `itertools.count` is a single
    atomic call under the GIL.
    """

    def __init__(self, start: N) -> None:
        self._start = start
        self._issued = itertools.count(start)
        self._last: Optional[N] = None

    def next(self) -> N:
        value = next(self._issued)
        self._last = value
        return value

    def last(self) -> N:
        last = self._last
        if last is None:
            raise GeneratorStateError("last() called before next() on counter")
        return last

    def __repr__(self) -> str:
        return f"CounterGenerator(start={self._start!r}, last={self._last!r})"


__all__ = ["CounterGenerator"]
