"""
Abstract generator interfaces for kvbench.

Concrete generators implement one of the protocols below. The ABC helpers are
optional bases for class-based implementations; the workload only relies on the
protocols, so any object with the right methods can be plugged in.
"""

from __future__ import annotations

import abc
from typing import Protocol, TypeVar, runtime_checkable

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

# Numeric generators only need +, %, comparison and float() on their values.
N = TypeVar("N", int, float)


@runtime_checkable
class Generator(Protocol[T_co]):
    """Produces values following some distribution."""

    def next(self) -> T_co:
        """Generate the next value."""
        ...


@runtime_checkable
class NumberGenerator(Generator[T_co], Protocol[T_co]):
    """A generator of numeric values with a known expectation."""

    def mean(self) -> float:
        """
        Return the expected value of the generated values.

        Used for reporting only; it does not depend on the values drawn so far.
        """
        ...


@runtime_checkable
class Counter(Generator[T_co], Protocol[T_co]):
    """A generator that issues a monotonically increasing sequence."""

    def last(self) -> T_co:
        """
        Return the last value made visible by this counter.

        `next()` must have been called at least once before relying on this.
        """
        ...


@runtime_checkable
class AcknowledgedCounter(Counter[T], Protocol[T]):
    """A counter whose `last()` only advances through `acknowledge()` calls."""

    def acknowledge(self, value: T) -> None:
        """Mark a previously issued value as complete."""
        ...


class AbstractNumberGenerator(abc.ABC):
    """
    Optional ABC helper for numeric generators.

    Subclasses implement `next` and `mean`.
    """

    @abc.abstractmethod
    def next(self):  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def mean(self) -> float:  # pragma: no cover - interface only
        raise NotImplementedError

    def __repr__(self) -> str:
        params = ", ".join(f"{k.lstrip('_')}={v!r}" for k, v in self._params().items())
        return f"{type(self).__name__}({params})"

    def _params(self) -> dict:
        return {}


__all__ = [
    "N",
    "Generator",
    "NumberGenerator",
    "Counter",
    "AcknowledgedCounter",
    "AbstractNumberGenerator",
]
