from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table


def _format_mb(value: Optional[int]) -> str:
    if value is None:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def print_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render phase results as rich tables.

    One summary table with a row per phase, followed by a per-operation
    breakdown of successes and failures.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    summary = Table(title="kvbench Results", box=box.ROUNDED)
    summary.add_column("Phase", style="cyan", no_wrap=True)
    summary.add_column("Threads", justify="right", style="blue")
    summary.add_column("Operations", justify="right", style="magenta")
    summary.add_column("Duration (s)", justify="right", style="green")
    summary.add_column("Throughput (ops/s)", justify="right", style="bold green")
    summary.add_column("Watermark", justify="right")
    summary.add_column("Peak Memory (MB)", justify="right", style="yellow")
    summary.add_column("CPU %", justify="right", style="red")

    for res in results:
        cpu = res.get("cpu_percent")
        watermark = res.get("watermark")
        summary.add_row(
            res.get("phase", "Unknown"),
            str(res.get("threads", 0)),
            f"{res.get('operations', 0):,}",
            f"{res.get('duration_seconds', 0.0):.2f}",
            f"{res.get('throughput_ops_per_sec', 0.0):,.2f}",
            "-" if watermark is None else str(watermark),
            _format_mb(res.get("peak_rss_bytes")),
            "N/A" if cpu is None else f"{cpu:.1f}",
        )
    console.print(summary)

    breakdown = Table(title="Operations", box=box.SIMPLE)
    breakdown.add_column("Phase", style="cyan")
    breakdown.add_column("Operation")
    breakdown.add_column("OK", justify="right", style="green")
    breakdown.add_column("Failed", justify="right", style="red")

    for res in results:
        for name, counts in sorted(res.get("counts", {}).items()):
            breakdown.add_row(
                res.get("phase", "Unknown"),
                name,
                f"{counts.get('ok', 0):,}",
                f"{counts.get('failed', 0):,}",
            )
    console.print(breakdown)

    for res in results:
        errors = res.get("errors") or {}
        if errors:
            detail = ", ".join(f"{name}={count}" for name, count in sorted(errors.items()))
            console.print(f"[red]{res.get('phase')} errors:[/red] {detail}")
        if res.get("stopped_workers"):
            console.print(
                f"[red]{res.get('phase')}: {res['stopped_workers']} worker(s) stopped early[/red]"
            )
