from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer

from kvbench.config import WorkloadConfig, get_settings
from kvbench.infrastructure.factory import available_backends
from kvbench.orchestrator import RunConfig, run_benchmark
from kvbench.reporter import print_results
from kvbench.utils.logging import configure_logging

app = typer.Typer(help="kvbench: key-value store benchmark CLI.")


def _load_workload(workload_file: Optional[Path]) -> WorkloadConfig:
    if workload_file is not None:
        return WorkloadConfig.from_file(workload_file)
    return get_settings().load_workload()


def _execute(
    phases: List[str],
    workload_file: Optional[Path],
    operations: Optional[int],
    threads: Optional[int],
    backend: Optional[str],
    persist: bool,
) -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)

    config = RunConfig(
        phases=phases,
        operations=operations if "run" in phases else None,
        load_operations=operations if phases == ["load"] else None,
        threads=threads,
        backend=backend,
        persist=persist,
    )
    try:
        results = run_benchmark(_load_workload(workload_file), config)
    except ValueError as exc:  # ConfigurationError and pydantic ValidationError
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    print_results(results)
    if any(res.get("stopped_workers") for res in results):
        raise typer.Exit(code=1)


WORKLOAD_OPTION = typer.Option(
    None, "--workload", "-w", help="JSON workload file (default from settings)."
)
THREADS_OPTION = typer.Option(None, "--threads", "-t", help="Worker threads.")
BACKEND_OPTION = typer.Option(None, "--backend", "-b", help="Backend name.")
PERSIST_OPTION = typer.Option(True, "--persist/--no-persist", help="Write JSON results.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    workload = settings.load_workload()
    typer.echo(
        f"env={settings.app_env} backend={settings.backend} "
        f"(available: {', '.join(available_backends())}) threads={settings.threads} "
        f"operations={settings.operation_count} results={settings.results_dir}"
    )
    typer.echo(workload.model_dump_json(indent=2))


@app.command()
def load(
    workload_file: Optional[Path] = WORKLOAD_OPTION,
    records: Optional[int] = typer.Option(
        None, "--records", "-n", help="Records to insert (default: the workload's insert count)."
    ),
    threads: Optional[int] = THREADS_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
    persist: bool = PERSIST_OPTION,
) -> None:
    """
    Insert the initial records of a workload.
    """
    _execute(["load"], workload_file, records, threads, backend, persist)


@app.command()
def run(
    workload_file: Optional[Path] = WORKLOAD_OPTION,
    operations: Optional[int] = typer.Option(
        None, "--operations", "-o", help="Transactions to run (default from settings)."
    ),
    threads: Optional[int] = THREADS_OPTION,
    backend: Optional[str] = BACKEND_OPTION,
    skip_load: bool = typer.Option(
        False, "--skip-load", help="Run transactions without loading records first."
    ),
    persist: bool = PERSIST_OPTION,
) -> None:
    """
    Load the records, then run the transaction mix against them.
    """
    phases = ["run"] if skip_load else ["load", "run"]
    _execute(phases, workload_file, operations, threads, backend, persist)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
