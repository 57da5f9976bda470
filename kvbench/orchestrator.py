"""
Run harness: drives a workload from many worker threads and collects results.

Usage (example from CLI):
    from kvbench.orchestrator import RunConfig, run_benchmark

    results = run_benchmark(WorkloadConfig(record_count=1000), RunConfig(operations=1000))
    print(results)

Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
from collections import Counter as Tally
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from kvbench.config import WorkloadConfig, get_settings
from kvbench.domain.models import Operation, OperationCounts, PhaseResult
from kvbench.errors import WindowOverflowError
from kvbench.infrastructure.db import Db
from kvbench.infrastructure.factory import get_backend_factory
from kvbench.utils.logging import get_logger
from kvbench.utils.profiler import profile_block
from kvbench.workload import CoreWorkload

log = get_logger(__name__)

PHASES = ("load", "run")


@dataclass(frozen=True)
class RunConfig:
    """
    Options of one benchmark invocation.

    `None` fields fall back to `Settings`.
    """

    phases: Sequence[str] = PHASES
    operations: Optional[int] = None
    load_operations: Optional[int] = None
    threads: Optional[int] = None
    backend: Optional[str] = None
    results_dir: Optional[Path] = None
    persist: bool = True


@dataclass
class _WorkerTally:
    ok: Tally = field(default_factory=Tally)
    failed: Tally = field(default_factory=Tally)
    errors: Tally = field(default_factory=Tally)
    stopped: bool = False


def _split_operations(total: int, workers: int) -> List[int]:
    """
    Spread `total` operations over at most `workers` workers.

    The remainder goes to the first workers; workers with nothing to do are dropped.
    """
    workers = max(1, min(workers, total)) if total else 1
    base, remainder = divmod(total, workers)
    return [base + (1 if i < remainder else 0) for i in range(workers)]


def _run_worker(
    workload: CoreWorkload,
    phase: str,
    operations: int,
    db_factory: Callable[[], Db],
) -> _WorkerTally:
    tally = _WorkerTally()
    db = db_factory()
    db.init()
    try:
        for _ in range(operations):
            op = Operation.INSERT if phase == "load" else workload.next_operation()
            try:
                if phase == "load":
                    workload.insert(db)
                else:
                    workload.execute(db, op)
            except WindowOverflowError:
                log.exception("Acknowledgment window exhausted; stopping worker")
                tally.failed[op.value] += 1
                tally.errors[WindowOverflowError.__name__] += 1
                tally.stopped = True
                break
            except Exception as exc:  # noqa: BLE001 - per-operation failures are counted, not fatal
                log.debug("Operation failed", extra={"operation": op.value, "error": str(exc)})
                tally.failed[op.value] += 1
                tally.errors[type(exc).__name__] += 1
            else:
                tally.ok[op.value] += 1
    finally:
        db.cleanup()
    return tally


def run_phase(
    workload: CoreWorkload,
    phase: str,
    operations: int,
    threads: int,
    db_factory: Callable[[], Db],
) -> PhaseResult:
    """
    Run `operations` load inserts or transactions spread over `threads` workers.

    Every worker gets its own backend instance from `db_factory`. Failures are
    counted per operation; a worker that exhausts the acknowledgment window
    stops while the others carry on.
    """
    if phase not in PHASES:
        raise ValueError(f"Unknown phase '{phase}'. Available: {', '.join(PHASES)}")

    shares = _split_operations(operations, threads)
    log.info(
        f"[PHASE START] {phase}",
        extra={"phase": phase, "operations": operations, "threads": len(shares)},
    )

    with profile_block(phase) as stats:
        with ThreadPoolExecutor(max_workers=len(shares), thread_name_prefix=f"{phase}-worker") as pool:
            futures = [
                pool.submit(_run_worker, workload, phase, share, db_factory) for share in shares
            ]
            tallies = [future.result() for future in futures]

    ok: Tally = Tally()
    failed: Tally = Tally()
    errors: Tally = Tally()
    for tally in tallies:
        ok.update(tally.ok)
        failed.update(tally.failed)
        errors.update(tally.errors)

    counts: Dict[str, OperationCounts] = {
        name: OperationCounts(ok=ok[name], failed=failed[name])
        for name in sorted(set(ok) | set(failed))
    }
    duration = stats.duration_seconds
    completed = sum(ok.values()) + sum(failed.values())
    result = PhaseResult(
        phase=phase,
        threads=len(shares),
        operations=completed,
        duration_seconds=round(duration, 4),
        throughput_ops_per_sec=round(completed / duration, 2) if duration > 0 else 0.0,
        counts=counts,
        errors=dict(errors),
        stopped_workers=sum(1 for t in tallies if t.stopped),
        watermark=workload.watermark(),
        peak_rss_bytes=stats.peak_rss_bytes,
        cpu_percent=round(stats.cpu_percent, 1) if stats.cpu_percent is not None else None,
    )

    log.info(
        f"[PHASE COMPLETE] {phase}",
        extra={
            "phase": phase,
            "operations": completed,
            "failed": result.failed,
            "throughput_ops": result.throughput_ops_per_sec,
        },
    )
    return result


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def run_benchmark(workload_config: WorkloadConfig, config: RunConfig | None = None) -> List[dict]:
    """
    Build a workload and run the requested phases against one backend.

    Parameters
    ----------
    workload_config : WorkloadConfig
        Scenario to run.
    config : RunConfig | None
        Phases, sizes and output options. Missing values come from settings.

    Returns
    -------
    List[dict]
        One result dictionary per phase, in execution order.
    """
    config = config or RunConfig()
    settings = get_settings()
    threads = config.threads or settings.threads
    operations = config.operations if config.operations is not None else settings.operation_count
    backend = config.backend or settings.backend

    workload = CoreWorkload(workload_config)
    db_factory = get_backend_factory(backend)

    results: List[dict] = []
    for phase in config.phases:
        if phase == "load":
            count = config.load_operations
            if count is None:
                # An unbounded key space has no natural load size.
                count = workload.insert_count if workload_config.record_count else operations
        else:
            count = operations
        result = run_phase(workload, phase, count, threads, db_factory)
        results.append(result.model_dump())

    if config.persist:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "backend": backend,
            "workload": workload_config.model_dump(),
            "results": results,
        }
        _persist_results(payload, Path(config.results_dir or settings.results_dir))

    return results


__all__ = ["PHASES", "RunConfig", "run_phase", "run_benchmark"]
