"""
Acknowledged counter.

Key numbers are issued eagerly by `next()`, but completion is reported later
and in any order through `acknowledge()`. `last()` exposes a watermark: the
largest value such that it and every value below it have been acknowledged.
Readers use the watermark to avoid addressing keys that may not exist yet.

Outstanding acknowledgments are tracked in a fixed ring of `window_size` slots
indexed by `value mod window_size`. The ring bounds memory: acknowledging a
value whose slot is still held by an earlier value means more than
`window_size` values are in flight, and `acknowledge()` raises `WindowOverflowError` instead of
corrupting the watermark. Only the slot flag is consulted; the watermark may
be mid-advance while it is read.

Locking:
- the issue path is a bare `itertools.count`, whose step is atomic under the GIL;
- slot flags are guarded by a fixed pool of striped locks, so acknowledgments
  of different slots rarely contend;
- the watermark is advanced under a separate lock taken with a non-blocking
  acquire. An acknowledger that loses the race returns immediately; whoever
  holds the lock picks up its slot if the prefix is contiguous by then.
"""

from __future__ import annotations

import itertools
import threading
from typing import List

from kvbench.errors import ConfigurationError, WindowOverflowError
from kvbench.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_WINDOW_SIZE = 1 << 20
_LOCK_STRIPES = 64


class AcknowledgedCounterGenerator:
    """
    Counter whose visible `last()` value only advances through acknowledgments.

    Parameters
    ----------
    start : int
        First value issued by `next()`. The watermark starts at `start - 1`.
    window_size : int
        Maximum number of issued-but-unacknowledged values. Must be a power of two.
    """

    def __init__(self, start: int, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        if window_size <= 0 or window_size & (window_size - 1):
            raise ConfigurationError(f"window size must be a power of two, got {window_size}")
        self._window_size = window_size
        self._mask = window_size - 1

        self._issued = itertools.count(start)

        self._window: List[bool] = [False] * window_size
        self._stripes = [threading.Lock() for _ in range(min(_LOCK_STRIPES, window_size))]

        self._limit = start - 1
        self._advance_lock = threading.Lock()

    @property
    def window_size(self) -> int:
        return self._window_size

    def next(self) -> int:
        return next(self._issued)

    def last(self) -> int:
        return self._limit

    def acknowledge(self, value: int) -> None:
        if value <= self._limit:
            raise WindowOverflowError(
                f"value {value} is already covered by the watermark {self._limit}"
            )
        slot = value & self._mask
        with self._stripe(slot):
            if self._window[slot]:
                raise WindowOverflowError(
                    f"too many unacknowledged insertion keys (window={self._window_size}, "
                    f"value={value})"
                )
            self._window[slot] = True

        while self._advance_lock.acquire(blocking=False):
            try:
                self._advance()
            finally:
                self._advance_lock.release()
            # Another acknowledger may have filled the next slot while we held the lock.
            if not self._window[(self._limit + 1) & self._mask]:
                return

    def _advance(self) -> None:
        limit = self._limit
        index = limit + 1
        # At most one full turn of the ring per pass.
        end = index + self._window_size
        while index != end:
            slot = index & self._mask
            with self._stripe(slot):
                if not self._window[slot]:
                    break
                self._window[slot] = False
            index += 1

        if index - 1 != limit:
            self._limit = index - 1
            log.debug(
                "Watermark advanced",
                extra={"previous": limit, "watermark": index - 1},
            )

    def _stripe(self, slot: int) -> threading.Lock:
        return self._stripes[slot % len(self._stripes)]

    def __repr__(self) -> str:
        return (
            f"AcknowledgedCounterGenerator(last={self._limit}, "
            f"window={self._window_size})"
        )


__all__ = ["AcknowledgedCounterGenerator", "DEFAULT_WINDOW_SIZE"]
