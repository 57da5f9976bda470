from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from kvbench.errors import ConfigurationError, WindowOverflowError
from kvbench.generators import AcknowledgedCounter, AcknowledgedCounterGenerator

SMALL_WINDOW = 8
THREADS = 8
KEYS_PER_THREAD = 2_500


def test_watermark_starts_below_start():
    counter = AcknowledgedCounterGenerator(100, window_size=SMALL_WINDOW)
    assert counter.last() == 99
    assert counter.next() == 100
    assert counter.last() == 99


def test_reverse_acknowledgment_waits_for_the_first_key():
    counter = AcknowledgedCounterGenerator(0, window_size=16)
    issued = [counter.next() for _ in range(10)]

    for value in reversed(issued[1:]):
        counter.acknowledge(value)
        assert counter.last() == -1

    counter.acknowledge(0)
    assert counter.last() == 9


def test_in_order_acknowledgment_advances_monotonically():
    counter = AcknowledgedCounterGenerator(5, window_size=SMALL_WINDOW)
    seen = []
    for _ in range(3 * SMALL_WINDOW):
        counter.acknowledge(counter.next())
        seen.append(counter.last())
    assert seen == list(range(5, 5 + 3 * SMALL_WINDOW))


def test_gap_holds_watermark_at_contiguous_prefix():
    counter = AcknowledgedCounterGenerator(0, window_size=SMALL_WINDOW)
    for _ in range(5):
        counter.next()
    counter.acknowledge(0)
    counter.acknowledge(1)
    counter.acknowledge(3)
    counter.acknowledge(4)
    assert counter.last() == 1
    counter.acknowledge(2)
    assert counter.last() == 4


def test_double_acknowledgment_of_pending_value_raises():
    counter = AcknowledgedCounterGenerator(0, window_size=SMALL_WINDOW)
    counter.next()
    counter.next()
    counter.acknowledge(1)
    with pytest.raises(WindowOverflowError):
        counter.acknowledge(1)


def test_double_acknowledgment_of_absorbed_value_raises():
    counter = AcknowledgedCounterGenerator(0, window_size=SMALL_WINDOW)
    counter.acknowledge(counter.next())
    assert counter.last() == 0
    with pytest.raises(WindowOverflowError):
        counter.acknowledge(0)


def test_overflow_when_slot_is_still_held():
    counter = AcknowledgedCounterGenerator(0, window_size=SMALL_WINDOW)
    for _ in range(SMALL_WINDOW + 1):
        counter.next()
    # Key 8 lands in slot 0 while key 0 is still outstanding.
    counter.acknowledge(SMALL_WINDOW)
    assert counter.last() == -1
    with pytest.raises(WindowOverflowError):
        counter.acknowledge(0)
    assert counter.last() == -1


def test_released_slot_is_reusable_while_watermark_is_mid_advance():
    resume = threading.Event()
    paused = threading.Event()

    class _PausingCounter(AcknowledgedCounterGenerator):
        """Holds the advancing thread just after it has released slot 0."""

        def _stripe(self, slot):
            if threading.current_thread().name == "advancer" and slot == 1 and not paused.is_set():
                paused.set()
                resume.wait(timeout=5)
            return super()._stripe(slot)

    counter = _PausingCounter(0, window_size=4)
    for _ in range(5):
        counter.next()
    for value in (1, 2, 3):
        counter.acknowledge(value)

    advancer = threading.Thread(target=counter.acknowledge, args=(0,), name="advancer")
    advancer.start()
    try:
        assert paused.wait(timeout=5)
        # Slot 0 is free again even though the watermark still reads -1.
        counter.acknowledge(4)
    finally:
        resume.set()
        advancer.join(timeout=5)

    assert not advancer.is_alive()
    assert counter.last() == 4


def test_watermark_never_passes_the_window():
    counter = AcknowledgedCounterGenerator(0, window_size=4)
    for _ in range(4):
        counter.next()
    for value in (0, 1, 2, 3):
        counter.acknowledge(value)
    assert counter.last() == 3
    for _ in range(4):
        counter.acknowledge(counter.next())
    assert counter.last() == 7


@pytest.mark.parametrize("window_size", [0, 3, 6, 1000])
def test_rejects_window_that_is_not_a_power_of_two(window_size):
    with pytest.raises(ConfigurationError):
        AcknowledgedCounterGenerator(0, window_size=window_size)


def test_window_of_one_is_allowed():
    counter = AcknowledgedCounterGenerator(0, window_size=1)
    for _ in range(3):
        counter.acknowledge(counter.next())
    assert counter.last() == 2


def test_satisfies_acknowledged_counter_protocol():
    assert isinstance(AcknowledgedCounterGenerator(0), AcknowledgedCounter)


def test_watermark_advance_logged_at_debug(caplog):
    counter = AcknowledgedCounterGenerator(0, window_size=SMALL_WINDOW)
    with caplog.at_level(logging.DEBUG, logger="kvbench.generators.acknowledged"):
        counter.acknowledge(counter.next())
    records = [r for r in caplog.records if r.getMessage() == "Watermark advanced"]
    assert len(records) == 1
    assert records[0].watermark == 0


@pytest.mark.slow
def test_concurrent_acknowledgment_reaches_last_issued_value():
    counter = AcknowledgedCounterGenerator(0, window_size=1 << 12)
    barrier = threading.Barrier(THREADS)

    def worker(seed: int) -> None:
        jitter = random.Random(seed)
        barrier.wait()
        for _ in range(KEYS_PER_THREAD):
            value = counter.next()
            if jitter.random() < 0.01:
                threading.Event().wait(0.0001)
            counter.acknowledge(value)

    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        for future in [pool.submit(worker, seed) for seed in range(THREADS)]:
            future.result()

    assert counter.last() == THREADS * KEYS_PER_THREAD - 1


def test_watermark_is_monotonic_under_concurrency():
    counter = AcknowledgedCounterGenerator(0, window_size=1 << 10)
    done = threading.Event()
    observed = []

    def observer() -> None:
        while not done.is_set():
            observed.append(counter.last())

    watcher = threading.Thread(target=observer)
    watcher.start()
    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [
                pool.submit(lambda: [counter.acknowledge(counter.next()) for _ in range(500)])
                for _ in range(4)
            ]
            for future in futures:
                future.result()
    finally:
        done.set()
        watcher.join()

    assert observed == sorted(observed)
    assert counter.last() == 1_999
