"""
Uniform numeric generator.

Draws from the closed interval [lower, upper]. Integer bounds produce integers,
float bounds produce floats.
"""

from __future__ import annotations

import random
from typing import Generic, Optional

from kvbench.errors import ConfigurationError
from kvbench.generators.abstract import AbstractNumberGenerator, N


class UniformGenerator(AbstractNumberGenerator, Generic[N]):
    """
    Return values uniformly at random from [lower, upper], both inclusive.

    Parameters
    ----------
    lower : int | float
        Smallest value that may be returned.
    upper : int | float
        Largest value that may be returned.
    rng : random.Random, optional
        Source of randomness. Defaults to a private generator seeded from
        system entropy.
    """

    def __init__(self, lower: N, upper: N, rng: Optional[random.Random] = None) -> None:
        if lower > upper:
            raise ConfigurationError(
                f"uniform generator lower bound {lower} exceeds upper bound {upper}"
            )
        self._lower = lower
        self._upper = upper
        self._integral = isinstance(lower, int) and isinstance(upper, int)
        self._rng = rng or random.Random()

    @property
    def lower(self) -> N:
        return self._lower

    @property
    def upper(self) -> N:
        return self._upper

    def next(self) -> N:
        if self._integral:
            return self._rng.randint(self._lower, self._upper)
        return self._rng.uniform(self._lower, self._upper)

    def mean(self) -> float:
        return (float(self._lower) + float(self._upper)) / 2.0

    def _params(self) -> dict:
        return {"lower": self._lower, "upper": self._upper}


__all__ = ["UniformGenerator"]
