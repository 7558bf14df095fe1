from __future__ import annotations

from types import TracebackType
from typing import Any, Dict, Optional, Type

from rich import box
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from audit_flattener.core.executor import ProgressCallback
from audit_flattener.domain.models import FieldKind, Schema
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)


class ProgressReporter:
    """
    Console progress for the discovery and execution passes.

    Each phase gets its own rich progress bar; every `log_every` records (and at
    the end of a phase) a "processed N of M" line is also logged. Observational
    only: callbacks never touch the records they are told about.
    """

    def __init__(self, enabled: bool = True, log_every: int = 1000, console: Optional[Console] = None) -> None:
        self._log_every = log_every
        self._progress = Progress(
            TextColumn("[bold cyan]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console or Console(stderr=True),
            disable=not enabled,
        )

    def __enter__(self) -> "ProgressReporter":
        self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self._progress.stop()

    def phase(self, label: str) -> ProgressCallback:
        """Return a progress(processed, total) callback bound to a new bar."""
        task_id = None

        def _update(processed: int, total: int) -> None:
            nonlocal task_id
            if task_id is None:
                task_id = self._progress.add_task(label, total=total)
            self._progress.update(task_id, completed=processed)
            if self._log_every and (processed % self._log_every == 0 or processed == total):
                log.info(
                    f"[{label.upper()}] processed {processed:,} of {total:,}",
                    extra={"phase": label, "processed": processed, "total": total},
                )

        return _update


def print_schema(schema: Schema, console: Optional[Console] = None) -> None:
    """
    Render discovered fields as a rich table, in output column order.
    """
    console = console or Console()

    if len(schema) == 0:
        console.print("[yellow]No AuditData fields discovered.[/yellow]")
        return

    table = Table(
        title="Discovered AuditData Fields",
        box=box.ROUNDED,
        caption=f"{len(schema)} field(s), {len(schema.complex_fields)} extracted as raw text",
    )
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Output Column", style="magenta")
    table.add_column("Kind", style="green")

    for field in schema:
        kind_style = "yellow" if field.kind is FieldKind.COMPLEX else "green"
        renamed = field.column != field.name
        table.add_row(
            field.name,
            f"[bold]{field.column}[/bold]" if renamed else field.column,
            f"[{kind_style}]{field.kind.value}[/{kind_style}]",
        )

    console.print(table)


def print_summary(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a conversion run summary as a rich table.
    """
    console = console or Console()

    table = Table(title="Audit Log Flattening Results", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    table.add_row("Input", str(summary.get("input", "")))
    table.add_row("Output", str(summary.get("output", "")))
    table.add_row("Strategy", str(summary.get("strategy", "")))
    table.add_row("Records", f"{summary.get('records', 0):,}")
    table.add_row("Rows written", f"{summary.get('rows', 0):,}")
    table.add_row("Payload fields", f"{summary.get('fields', 0):,}")
    table.add_row("Raw-text fields", f"{summary.get('complex_fields', 0):,}")

    failures = summary.get("decode_failures", 0)
    table.add_row("Decode failures", f"[red]{failures:,}[/red]" if failures else "0")

    exhausted = summary.get("exhausted_operations") or []
    if exhausted:
        table.add_row("Operations without sample", f"[yellow]{', '.join(exhausted)}[/yellow]")

    unplanned = summary.get("unplanned_fields") or {}
    if unplanned:
        table.add_row(
            "Fields missed by discovery",
            f"[yellow]{', '.join(sorted(unplanned))}[/yellow]",
        )

    for label, phase in (summary.get("phases") or {}).items():
        duration = phase.get("duration_seconds", 0.0)
        mem_mb = (phase.get("peak_rss_bytes") or 0) / (1024 * 1024)
        table.add_row(f"{label.capitalize()} time", f"{duration:.2f}s ({mem_mb:.1f} MB peak)")

    console.print(table)

    if unplanned:
        console.print(
            "[dim]Some records carry fields their operation's sample did not. "
            "Re-run with --strategy exhaustive to include them.[/dim]"
        )
