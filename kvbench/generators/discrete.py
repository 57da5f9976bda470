"""
Weighted discrete chooser.

Picks one of a fixed set of outcomes with probability proportional to its
weight, using inverse-CDF sampling over the cumulative weights.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, Tuple, TypeVar

from kvbench.errors import ConfigurationError, GeneratorStateError

T = TypeVar("T")


@dataclass(frozen=True)
class Choice(Generic[T]):
    """One outcome of a `DiscreteGenerator` and its relative weight."""

    value: T
    weight: float

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ConfigurationError(f"choice {self.value!r} has negative weight {self.weight}")


class DiscreteGenerator(Generic[T]):
    """
    Choose from a discrete set of values with the given weights.

    Choices are frozen at construction; changing the weights means building a
    new generator. When a draw lands exactly on a cumulative boundary the
    earlier choice in list order wins.
    """

    def __init__(self, choices: Iterable[Choice[T]], rng: Optional[random.Random] = None) -> None:
        self._choices: Tuple[Choice[T], ...] = tuple(choices)
        if not self._choices:
            raise ConfigurationError("discrete generator needs at least one choice")
        self._sum = sum(choice.weight for choice in self._choices)
        if self._sum <= 0:
            raise ConfigurationError("discrete generator weights must not all be zero")
        self._rng = rng or random.Random()

    @property
    def choices(self) -> Tuple[Choice[T], ...]:
        return self._choices

    @property
    def total_weight(self) -> float:
        return self._sum

    def next(self) -> T:
        target = self._rng.random() * self._sum
        acc = 0.0
        for choice in self._choices:
            acc += choice.weight
            if target < acc:
                return choice.value
        # Only reachable if float accumulation lands below the precomputed sum.
        raise GeneratorStateError(
            f"draw {target} fell outside cumulative weight {acc} of {len(self._choices)} choices"
        )

    def __repr__(self) -> str:
        pairs = ", ".join(f"{c.value!r}:{c.weight}" for c in self._choices)
        return f"DiscreteGenerator({pairs})"


__all__ = ["Choice", "DiscreteGenerator"]
