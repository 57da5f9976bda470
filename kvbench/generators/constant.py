"""Constant numeric generator."""

from __future__ import annotations

from typing import Generic

from kvbench.generators.abstract import AbstractNumberGenerator, N


class ConstantGenerator(AbstractNumberGenerator, Generic[N]):
    """A trivial generator that always returns the same value."""

    def __init__(self, value: N) -> None:
        self._value = value

    def next(self) -> N:
        return self._value

    def mean(self) -> float:
        return float(self._value)

    def _params(self) -> dict:
        return {"value": self._value}


__all__ = ["ConstantGenerator"]
