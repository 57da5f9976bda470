from __future__ import annotations

import random
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest

from kvbench.errors import ConfigurationError, GeneratorStateError
from kvbench.generators import (
    Choice,
    ConstantGenerator,
    CounterGenerator,
    DiscreteGenerator,
    NumberGenerator,
    SequentialGenerator,
    UniformGenerator,
)
from kvbench.generators import Counter as CounterProtocol

THREADS = 8
DRAWS_PER_THREAD = 2_000
UNIFORM_SAMPLES = 20_000
DISCRETE_SAMPLES = 40_000


def _concurrent_draws(draw, threads: int = THREADS, per_thread: int = DRAWS_PER_THREAD):
    barrier = threading.Barrier(threads)

    def worker():
        barrier.wait()
        return [draw() for _ in range(per_thread)]

    with ThreadPoolExecutor(max_workers=threads) as pool:
        futures = [pool.submit(worker) for _ in range(threads)]
        return [value for future in futures for value in future.result()]


class TestConstantGenerator:
    def test_returns_value_and_mean(self):
        gen = ConstantGenerator(42)
        assert [gen.next() for _ in range(3)] == [42, 42, 42]
        assert gen.mean() == 42.0

    def test_float_value(self):
        assert ConstantGenerator(2.5).mean() == 2.5

    def test_satisfies_number_generator_protocol(self):
        assert isinstance(ConstantGenerator(1), NumberGenerator)


class TestUniformGenerator:
    def test_integer_draws_stay_in_bounds(self, rng):
        gen = UniformGenerator(3, 7, rng=rng)
        draws = [gen.next() for _ in range(UNIFORM_SAMPLES)]
        assert min(draws) == 3
        assert max(draws) == 7
        assert all(isinstance(d, int) for d in draws)

    def test_float_draws_stay_in_bounds(self, rng):
        gen = UniformGenerator(0.5, 1.5, rng=rng)
        draws = [gen.next() for _ in range(1_000)]
        assert all(0.5 <= d <= 1.5 for d in draws)
        assert all(isinstance(d, float) for d in draws)

    def test_mean_formula_matches_samples(self, rng):
        gen = UniformGenerator(0, 100, rng=rng)
        assert gen.mean() == 50.0
        draws = [gen.next() for _ in range(UNIFORM_SAMPLES)]
        assert sum(draws) / len(draws) == pytest.approx(50.0, abs=1.5)

    def test_degenerate_range(self, rng):
        gen = UniformGenerator(4, 4, rng=rng)
        assert {gen.next() for _ in range(10)} == {4}

    def test_rejects_inverted_bounds(self):
        with pytest.raises(ConfigurationError):
            UniformGenerator(5, 1)

    def test_seeded_rng_is_reproducible(self):
        a = UniformGenerator(0, 1_000, rng=random.Random(7))
        b = UniformGenerator(0, 1_000, rng=random.Random(7))
        assert [a.next() for _ in range(20)] == [b.next() for _ in range(20)]


class TestSequentialGenerator:
    def test_wraps_around(self):
        gen = SequentialGenerator(5, 7)
        assert [gen.next() for _ in range(7)] == [5, 6, 7, 5, 6, 7, 5]

    def test_mean(self):
        assert SequentialGenerator(0, 9).mean() == 4.5

    def test_single_value_range(self):
        gen = SequentialGenerator(3, 3)
        assert [gen.next() for _ in range(3)] == [3, 3, 3]

    def test_rejects_end_below_start(self):
        with pytest.raises(ConfigurationError):
            SequentialGenerator(10, 9)

    def test_concurrent_draws_cover_each_value_equally(self):
        gen = SequentialGenerator(0, 99)
        draws = _concurrent_draws(gen.next)
        counts = Counter(draws)
        expected = THREADS * DRAWS_PER_THREAD // 100
        assert set(counts) == set(range(100))
        assert set(counts.values()) == {expected}


class TestCounterGenerator:
    def test_issues_consecutive_values(self):
        gen = CounterGenerator(10)
        assert [gen.next() for _ in range(3)] == [10, 11, 12]
        assert gen.last() == 12

    def test_last_before_next_raises(self):
        with pytest.raises(GeneratorStateError):
            CounterGenerator(0).last()

    def test_satisfies_counter_protocol(self):
        assert isinstance(CounterGenerator(0), CounterProtocol)

    def test_concurrent_next_never_double_issues(self):
        gen = CounterGenerator(0)
        draws = _concurrent_draws(gen.next)
        total = THREADS * DRAWS_PER_THREAD
        assert sorted(draws) == list(range(total))
        assert gen.last() == total - 1


class TestDiscreteGenerator:
    def test_ratio_follows_weights(self, rng):
        gen = DiscreteGenerator([Choice("a", 3.0), Choice("b", 1.0)], rng=rng)
        counts = Counter(gen.next() for _ in range(DISCRETE_SAMPLES))
        assert counts["a"] / DISCRETE_SAMPLES == pytest.approx(0.75, abs=0.02)
        assert counts["b"] / DISCRETE_SAMPLES == pytest.approx(0.25, abs=0.02)

    def test_single_choice_always_wins(self, rng):
        gen = DiscreteGenerator([Choice("only", 0.5)], rng=rng)
        assert {gen.next() for _ in range(100)} == {"only"}

    def test_zero_weight_choice_is_never_drawn(self, rng):
        gen = DiscreteGenerator([Choice("never", 0.0), Choice("always", 1.0)], rng=rng)
        assert {gen.next() for _ in range(1_000)} == {"always"}

    def test_total_weight_is_precomputed(self):
        gen = DiscreteGenerator([Choice(1, 0.25), Choice(2, 0.5)])
        assert gen.total_weight == pytest.approx(0.75)
        assert [c.value for c in gen.choices] == [1, 2]

    def test_rejects_empty_choices(self):
        with pytest.raises(ConfigurationError):
            DiscreteGenerator([])

    def test_rejects_all_zero_weights(self):
        with pytest.raises(ConfigurationError):
            DiscreteGenerator([Choice("a", 0.0), Choice("b", 0.0)])

    def test_rejects_negative_weight(self):
        with pytest.raises(ConfigurationError):
            Choice("a", -1.0)

    def test_fall_through_raises_state_error(self):
        class _AlwaysOne(random.Random):
            def random(self):
                return 1.0

        gen = DiscreteGenerator([Choice("a", 1.0)], rng=_AlwaysOne())
        with pytest.raises(GeneratorStateError):
            gen.next()
