"""
Core workload engine.

One `CoreWorkload` is built from a `WorkloadConfig` and shared by every worker
thread of a run. Each call to `insert` (load phase) or `transaction` (run
phase) builds its own key and values and performs its own backend calls, so
the engine needs no global lock; the only shared mutable state lives in the
generators, which are individually thread-safe.

Key visibility: transaction inserts draw key numbers from an acknowledged
counter and acknowledge them once the backend call returns, successful or
not. Reads, updates and read-modify-writes only address key numbers at or
below the counter's watermark, so they never target a key whose insert may
still be in flight.
"""

from __future__ import annotations

import random
import sys
import time
from typing import Callable, Dict, Mapping, Optional, Set

from tenacity import RetryCallState, RetryError, Retrying, stop_after_attempt

from kvbench.config import WorkloadConfig
from kvbench.domain.models import Operation
from kvbench.domain.values import DeterministicValue, RandomBytes, Value, read_value
from kvbench.errors import ConfigurationError, GeneratorStateError, InsertRetryError, VerificationError
from kvbench.generators import (
    DEFAULT_WINDOW_SIZE,
    AcknowledgedCounterGenerator,
    Choice,
    ConstantGenerator,
    CounterGenerator,
    DiscreteGenerator,
    NumberGenerator,
    SequentialGenerator,
    UniformGenerator,
)
from kvbench.infrastructure.db import Db
from kvbench.utils.hashing import fnv1_64, fnvhash64
from kvbench.utils.logging import get_logger

log = get_logger(__name__)

RETRY_JITTER = (0.8, 1.2)


class CoreWorkload:
    """
    A set of clients doing simple CRUD operations against one table.

    The relative proportion of each operation, the key distribution and the
    record layout come from the `WorkloadConfig`. See `kvbench.config` for the
    available options and their defaults.

    Parameters
    ----------
    config : WorkloadConfig
        Scenario description.
    rng : random.Random, optional
        Randomness for all generators of this workload; pass a seeded instance
        for reproducible draws.
    window_size : int
        Maximum number of transaction inserts in flight at once.
    sleep : callable
        Used for the pause between insert retries.

    Raises
    ------
    ConfigurationError
        If the configuration names an unsupported distribution or combines
        options inconsistently.
    """

    def __init__(
        self,
        config: WorkloadConfig,
        rng: Optional[random.Random] = None,
        window_size: int = DEFAULT_WINDOW_SIZE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._rng = rng or random.Random()
        self._sleep = sleep

        if config.insert_order not in ("ordered", "hashed"):
            raise ConfigurationError(f"insert order not supported: {config.insert_order}")
        self.table = config.table
        self.ordered_inserts = config.insert_order == "ordered"
        self.zero_padding = config.zero_padding
        self.data_integrity = config.data_integrity
        self.read_all_fields = config.read_all_fields
        self.read_all_fields_by_name = config.read_all_fields_by_name
        self.write_all_fields = config.write_all_fields
        self.insertion_retry_limit = config.insertion_retry_limit
        self.insertion_retry_interval = config.insertion_retry_interval

        self.field_length_generator = self._build_field_length_generator(config)
        self.scan_length_generator = self._build_scan_length_generator(config)

        if config.data_integrity and config.field_length_distribution != "constant":
            raise ConfigurationError("must have constant field length to check data integrity")

        if config.field_count < 1:
            raise ConfigurationError("a record needs at least one field")
        self.field_names = [f"{config.field_name_prefix}{i}" for i in range(config.field_count)]
        self.field_chooser = UniformGenerator(0, len(self.field_names) - 1, rng=self._rng)

        record_count = config.record_count or sys.maxsize
        insert_start = config.insert_start
        insert_count = (
            config.insert_count if config.insert_count is not None else record_count - insert_start
        )
        if insert_count < 0 or record_count < insert_start + insert_count:
            raise ConfigurationError(
                f"invalid combination of insert_start ({insert_start}), insert_count "
                f"({insert_count}) and record_count ({record_count}): record_count must be "
                "equal to or larger than insert_start + insert_count"
            )
        if insert_count == 0:
            raise ConfigurationError("key space is empty: insert_count resolves to 0")
        self.record_count = record_count
        self.insert_start = insert_start
        self.insert_count = insert_count

        self.key_sequencer = CounterGenerator(insert_start)
        self.transaction_insert_key_sequencer = AcknowledgedCounterGenerator(
            record_count, window_size=window_size
        )
        self.key_chooser = self._build_key_chooser(config, insert_start, insert_count)
        self.operation_chooser = self._build_operation_chooser(config)

        log.debug(
            "Workload constructed",
            extra={
                "table": self.table,
                "fields": len(self.field_names),
                "record_count": record_count,
                "insert_start": insert_start,
                "insert_count": insert_count,
                "operations": [c.value.value for c in self.operation_chooser.choices],
            },
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def _build_field_length_generator(self, config: WorkloadConfig) -> NumberGenerator[int]:
        name = config.field_length_distribution
        if name == "constant":
            return ConstantGenerator(config.max_field_length)
        if name == "uniform":
            return UniformGenerator(config.min_field_length, config.max_field_length, rng=self._rng)
        raise ConfigurationError(f"field length distribution not supported: {name}")

    def _build_scan_length_generator(self, config: WorkloadConfig) -> NumberGenerator[int]:
        name = config.scan_length_distribution
        if name == "uniform":
            return UniformGenerator(config.min_scan_length, config.max_scan_length, rng=self._rng)
        raise ConfigurationError(f"scan length distribution not supported: {name}")

    def _build_key_chooser(
        self, config: WorkloadConfig, insert_start: int, insert_count: int
    ) -> NumberGenerator[int]:
        name = config.request_distribution
        last_key = insert_start + insert_count - 1
        if name == "uniform":
            return UniformGenerator(insert_start, last_key, rng=self._rng)
        if name == "sequential":
            return SequentialGenerator(insert_start, last_key)
        raise ConfigurationError(f"request distribution not supported: {name}")

    def _build_operation_chooser(self, config: WorkloadConfig) -> DiscreteGenerator[Operation]:
        proportions = [
            (Operation.READ, config.read_proportion),
            (Operation.UPDATE, config.update_proportion),
            (Operation.INSERT, config.insert_proportion),
            (Operation.SCAN, config.scan_proportion),
            (Operation.READ_MODIFY_WRITE, config.read_modify_write_proportion),
        ]
        choices = [Choice(op, weight) for op, weight in proportions if weight > 0]
        if not choices:
            raise ConfigurationError("at least one operation proportion must be positive")
        return DiscreteGenerator(choices, rng=self._rng)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def insert(self, db: Db) -> None:
        """
        Do one load-phase insert.

        Called concurrently by every worker. Failed inserts are retried up to
        `insertion_retry_limit` times with a jittered pause in between.

        Raises
        ------
        InsertRetryError
            If every attempt failed; chained to the last backend error.
        """
        key_num = self.key_sequencer.next()
        key = self.build_key_name(key_num)
        values = self.build_values(key)
        self._insert_with_retry(db, key, values)

    def transaction(self, db: Db) -> Operation:
        """
        Do one run-phase operation, chosen according to the configured mix.

        Returns the operation performed. Backend and verification errors
        propagate to the caller.
        """
        op = self.next_operation()
        self.execute(db, op)
        return op

    def next_operation(self) -> Operation:
        """Draw the kind of the next transaction from the operation mix."""
        return self.operation_chooser.next()

    def execute(self, db: Db, op: Operation) -> None:
        """Perform one transaction of the given kind."""
        if op is Operation.READ:
            self._txn_read(db)
        elif op is Operation.UPDATE:
            self._txn_update(db)
        elif op is Operation.INSERT:
            self._txn_insert(db)
        elif op is Operation.SCAN:
            self._txn_scan(db)
        elif op is Operation.READ_MODIFY_WRITE:
            self._txn_read_modify_write(db)
        else:
            raise GeneratorStateError(f"unhandled operation {op!r}")

    def watermark(self) -> int:
        """Largest transaction-insert key number known to be acknowledged."""
        return self.transaction_insert_key_sequencer.last()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _txn_read(self, db: Db) -> None:
        key = self.build_key_name(self.next_key_num())
        fields = self._read_fields()
        cells = db.read(self.table, key, fields)
        if self.data_integrity:
            self.verify_row(key, fields, cells)

    def _txn_update(self, db: Db) -> None:
        key = self.build_key_name(self.next_key_num())
        values = self.build_values(key) if self.write_all_fields else self.build_single_value(key)
        db.update(self.table, key, values)

    def _txn_insert(self, db: Db) -> None:
        key_num = self.transaction_insert_key_sequencer.next()
        try:
            key = self.build_key_name(key_num)
            db.insert(self.table, key, self.build_values(key))
        finally:
            self.transaction_insert_key_sequencer.acknowledge(key_num)

    def _txn_scan(self, db: Db) -> None:
        # The start key is drawn like an insert key, so it must be acknowledged
        # as well or the watermark would stall behind it.
        key_num = self.transaction_insert_key_sequencer.next()
        try:
            start_key = self.build_key_name(key_num)
            length = self.scan_length_generator.next()
            fields: Set[str] = set()
            if not self.read_all_fields:
                fields.add(self._choose_field())
            elif self.read_all_fields_by_name:
                fields.update(self.field_names)
            db.scan(self.table, start_key, length, fields)
        finally:
            self.transaction_insert_key_sequencer.acknowledge(key_num)

    def _txn_read_modify_write(self, db: Db) -> None:
        key = self.build_key_name(self.next_key_num())
        fields = self._read_fields()
        values = self.build_values(key) if self.write_all_fields else self.build_single_value(key)

        cells = db.read(self.table, key, fields)
        db.update(self.table, key, values)

        if self.data_integrity:
            self.verify_row(key, fields, cells)

    def _read_fields(self) -> Set[str]:
        if not self.read_all_fields:
            return {self._choose_field()}
        if self.data_integrity or self.read_all_fields_by_name:
            return set(self.field_names)
        return set()

    def _choose_field(self) -> str:
        return self.field_names[self.field_chooser.next()]

    def next_key_num(self) -> int:
        """
        Draw a key number that is covered by the insert watermark.

        Redraws until the key chooser yields a number at or below the watermark,
        yielding the thread between attempts.
        """
        while True:
            key_num = self.key_chooser.next()
            if key_num <= self.transaction_insert_key_sequencer.last():
                return key_num
            time.sleep(0)

    # ------------------------------------------------------------------
    # Keys and values
    # ------------------------------------------------------------------

    def build_key_name(self, key_num: int) -> str:
        """Key string for a key number: FNV-hashed unless ordered, then zero padded."""
        if not self.ordered_inserts:
            key_num = fnvhash64(key_num)
        return str(key_num).zfill(self.zero_padding)

    def build_single_value(self, key: str) -> Dict[str, Value]:
        field = self._choose_field()
        return {field: self._build_value(key, field)}

    def build_values(self, key: str) -> Dict[str, Value]:
        return {field: self._build_value(key, field) for field in self.field_names}

    def _build_value(self, key: str, field: str) -> Value:
        size = self.field_length_generator.next()
        if self.data_integrity:
            return DeterministicValue(self.build_deterministic_value(size, key, field))
        return RandomBytes(size, rng=self._rng)

    @staticmethod
    def build_deterministic_value(size: int, key: str, field: str) -> bytes:
        """
        Reproducible field content of exactly `size` bytes.

        Starts with `key:field`, then repeatedly appends `:` followed by the
        decimal FNV-1 hash of everything built so far, and truncates.
        """
        buf = bytearray(f"{key}:{field}".encode("utf-8"))
        h = fnv1_64(buf)
        while len(buf) < size:
            buf += b":"
            h = fnv1_64(b":", h)
            digits = str(h).encode("ascii")
            buf += digits
            h = fnv1_64(digits, h)
        return bytes(buf[:size])

    def verify_row(self, key: str, fields: Set[str], cells: Mapping[str, object]) -> None:
        """
        Check every requested field of a read against its deterministic value.

        The expected length is drawn from the field length generator, which is
        constant whenever integrity checking is enabled.

        Raises
        ------
        VerificationError
            On a missing or unreadable field, or any byte mismatch.
        """
        for field in sorted(fields):
            if field not in cells:
                raise VerificationError(f"missing value for field {field} of key {key}")
            try:
                got = read_value(cells[field])
            except TypeError as exc:
                raise VerificationError(
                    f"unreadable value for field {field} of key {key}: {exc}"
                ) from exc
            expected = self.build_deterministic_value(
                self.field_length_generator.next(), key, field
            )
            if got != expected:
                raise VerificationError(
                    f"value mismatch for field {field} of key {key}, "
                    f"got: {got[:64]!r}, expected: {expected[:64]!r}"
                )

    # ------------------------------------------------------------------
    # Retry
    # ------------------------------------------------------------------

    def _insert_backoff(self, retry_state: RetryCallState) -> float:
        return self.insertion_retry_interval * self._rng.uniform(*RETRY_JITTER)

    def _log_insert_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "Insert failed, retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "retry_limit": self.insertion_retry_limit,
                "sleep_seconds": round(retry_state.next_action.sleep, 3)
                if retry_state.next_action
                else None,
                "error": str(exc),
            },
        )

    def _insert_with_retry(self, db: Db, key: str, values: Mapping[str, Value]) -> None:
        attempts = self.insertion_retry_limit + 1
        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=self._insert_backoff,
            before_sleep=self._log_insert_retry,
            sleep=self._sleep,
            reraise=False,
        )
        try:
            for attempt in retrying:
                with attempt:
                    # Streams are consumed by the backend, so each attempt gets fresh copies.
                    db.insert(self.table, key, {f: v.clone() for f, v in values.items()})
        except RetryError as exc:
            raise InsertRetryError(
                f"insert of key {key} failed after {attempts} attempt(s)"
            ) from exc.last_attempt.exception()


__all__ = ["CoreWorkload", "RETRY_JITTER"]
