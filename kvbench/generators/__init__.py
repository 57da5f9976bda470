"""
Generators package for kvbench.

This module re-exports the generator protocols and the concrete generators so
downstream code can import from `kvbench.generators` directly.
"""

from kvbench.generators.abstract import (
    AbstractNumberGenerator,
    AcknowledgedCounter,
    Counter,
    Generator,
    NumberGenerator,
)
from kvbench.generators.acknowledged import DEFAULT_WINDOW_SIZE, AcknowledgedCounterGenerator
from kvbench.generators.constant import ConstantGenerator
from kvbench.generators.counter import CounterGenerator
from kvbench.generators.discrete import Choice, DiscreteGenerator
from kvbench.generators.sequential import SequentialGenerator
from kvbench.generators.uniform import UniformGenerator

__all__ = [
    # Protocols
    "Generator",
    "NumberGenerator",
    "Counter",
    "AcknowledgedCounter",
    "AbstractNumberGenerator",
    # Concrete generators
    "ConstantGenerator",
    "UniformGenerator",
    "SequentialGenerator",
    "CounterGenerator",
    "AcknowledgedCounterGenerator",
    "DEFAULT_WINDOW_SIZE",
    "Choice",
    "DiscreteGenerator",
]
