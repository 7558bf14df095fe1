from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer

from audit_flattener.config import get_settings
from audit_flattener.domain.errors import AuditFlattenerError
from audit_flattener.infrastructure.loaders import load_records, supported_extensions
from audit_flattener.infrastructure.writer import write_schema_artifact
from audit_flattener.orchestrator import (
    RunConfig,
    discover_schema,
    run_conversion,
    strategy_descriptions,
)
from audit_flattener.reporter import ProgressReporter, print_schema, print_summary
from audit_flattener.utils.logging import configure_logging

app = typer.Typer(help="Flatten Unified Audit Log exports into a single CSV table.")


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"strategy={settings.discovery_strategy} prefix={settings.collision_prefix} "
        f"error_limit={settings.error_message_limit} progress_every={settings.progress_every} | "
        f"delimiter={settings.csv_delimiter!r} encoding={settings.output_encoding} "
        f"results={settings.results_dir} | inputs={', '.join(supported_extensions())}"
    )


@app.command()
def strategies() -> None:
    """
    List available discovery strategies.
    """
    for name, description in strategy_descriptions().items():
        typer.echo(f"{name:<12} {description}")


@app.command()
def discover(
    input_path: Path = typer.Argument(..., help="Audit export (.csv, .xml or .clixml)."),
    strategy: Optional[str] = typer.Option(
        None,
        "--strategy",
        "-s",
        help="Discovery strategy (sampled, exhaustive). Defaults to DISCOVERY_STRATEGY.",
    ),
    schema_out: Optional[Path] = typer.Option(
        None,
        "--schema-out",
        help="Also write the discovered fields to this CSV file.",
    ),
) -> None:
    """
    Discover and print the AuditData field schema without converting.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        records = load_records(input_path)
        with ProgressReporter(log_every=settings.progress_every) as reporter:
            result, _ = discover_schema(records, strategy, progress=reporter.phase("discovery"))
    except (AuditFlattenerError, FileNotFoundError, ValueError) as exc:
        _fail(str(exc))

    print_schema(result["schema"])
    if result.get("exhausted_operations"):
        typer.echo(
            "No decodable sample for: " + ", ".join(result["exhausted_operations"]), err=True
        )
    if schema_out is not None:
        write_schema_artifact(schema_out, result["schema"])


@app.command()
def convert(
    input_path: Path = typer.Argument(..., help="Audit export (.csv, .xml or .clixml)."),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output CSV path (default: <input>_flattened.csv).",
    ),
    strategy: Optional[str] = typer.Option(
        None,
        "--strategy",
        "-s",
        help="Discovery strategy (sampled, exhaustive). Defaults to DISCOVERY_STRATEGY.",
    ),
    schema_out: Optional[Path] = typer.Option(
        None,
        "--schema-out",
        help="Where to write the discovered field list (default: <output>_fields.csv).",
    ),
    no_persist: bool = typer.Option(
        False,
        "--no-persist",
        help="Do not write the JSON run summary to RESULTS_DIR.",
    ),
    no_progress: bool = typer.Option(
        False,
        "--no-progress",
        help="Disable progress bars.",
    ),
) -> None:
    """
    Discover the AuditData schema and write one flattened row per record.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    config = RunConfig(
        input_path=input_path,
        output_path=output,
        strategy=strategy,
        schema_path=schema_out,
        persist=not no_persist,
        progress=not no_progress,
    )
    try:
        summary = run_conversion(config)
    except (AuditFlattenerError, FileNotFoundError, ValueError) as exc:
        _fail(str(exc))

    print_summary(summary)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
