"""
Orchestrator for a conversion run: load, discover, resolve, plan, execute, write.

Usage (example from CLI):
    from audit_flattener.orchestrator import RunConfig, run_conversion

    summary = run_conversion(RunConfig(input_path="audit.xml", strategy="sampled"))
    print(summary["rows"], summary["columns"])

Run summaries are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from audit_flattener.config import get_settings
from audit_flattener.core.executor import ProgressCallback, execute_plan
from audit_flattener.core.plan import synthesize_plan
from audit_flattener.core.resolver import resolve_names
from audit_flattener.domain.models import AuditRecord
from audit_flattener.infrastructure.loaders import load_records
from audit_flattener.infrastructure.writer import write_schema_artifact, write_table
from audit_flattener.reporter import ProgressReporter
from audit_flattener.strategies.abstract import DiscoveryResult, DiscoveryStrategy
from audit_flattener.strategies.exhaustive import ExhaustiveStrategy
from audit_flattener.strategies.sampled import SampledStrategy
from audit_flattener.utils.logging import get_logger
from audit_flattener.utils.profiler import PhaseStats, profile_phase

log = get_logger(__name__)


@dataclass
class RunConfig:
    """
    Parameters of one conversion run.

    `output_path` defaults to `<input stem>_flattened.csv` beside the input,
    `schema_path` to `<output stem>_fields.csv` beside the output, and
    `strategy` to the DISCOVERY_STRATEGY setting.
    """

    input_path: Path | str
    output_path: Optional[Path | str] = None
    strategy: Optional[str] = None
    schema_path: Optional[Path | str] = None
    results_dir: Optional[Path | str] = None
    persist: bool = True
    progress: bool = True


def _strategy_factories() -> Dict[str, Callable[[], DiscoveryStrategy]]:
    """Registry of available discovery strategies."""
    return {
        "exhaustive": lambda: ExhaustiveStrategy(),
        "sampled": lambda: SampledStrategy(),
    }


def available_strategies() -> List[str]:
    """List available strategy names."""
    return sorted(_strategy_factories().keys())


def strategy_descriptions() -> Dict[str, str]:
    return {name: factory().description for name, factory in sorted(_strategy_factories().items())}


def _resolve_strategy(name: str) -> DiscoveryStrategy:
    factories = _strategy_factories()
    if name not in factories:
        raise ValueError(f"Unknown strategy '{name}'. Available: {', '.join(sorted(factories))}")
    return factories[name]()


def default_output_path(input_path: Path | str) -> Path:
    input_path = Path(input_path)
    return input_path.with_name(f"{input_path.stem}_flattened.csv")


def default_schema_path(output_path: Path | str) -> Path:
    output_path = Path(output_path)
    return output_path.with_name(f"{output_path.stem}_fields.csv")


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Run summary persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def discover_schema(
    records: Sequence[AuditRecord],
    strategy_name: Optional[str] = None,
    progress: Optional[ProgressCallback] = None,
) -> Tuple[DiscoveryResult, PhaseStats]:
    """
    Run discovery and name resolution.

    Returns the discovery result, whose `schema` has resolved names, and the
    profile of the discovery phase.
    """
    settings = get_settings()
    strategy = _resolve_strategy(strategy_name or settings.discovery_strategy)

    log.info(f"[DISCOVERY START] {strategy.name}", extra={"strategy": strategy.name, "records": len(records)})
    with profile_phase("discovery") as stats:
        result = strategy.discover(records, progress=progress)
        stats.records = result.get("records_scanned", 0)

    result["schema"] = resolve_names(result["schema"], prefix=settings.collision_prefix)
    log.info(
        f"[DISCOVERY COMPLETE] {strategy.name}",
        extra={
            "strategy": strategy.name,
            "fields": len(result["schema"]),
            "duration": round(stats.duration_seconds, 3),
        },
    )
    return result, stats


def run_conversion(config: RunConfig) -> dict:
    """
    Convert one audit export into a flat delimited table.

    Parameters
    ----------
    config : RunConfig
        Input/output locations and run options.

    Returns
    -------
    dict
        Run summary: counts, schema diagnostics, and per-phase profile stats.

    Raises
    ------
    UnsupportedFormatError, InputFormatError, FileNotFoundError
        Before any output is produced.
    """
    settings = get_settings()
    strategy_name = config.strategy or settings.discovery_strategy
    output_path = Path(config.output_path or default_output_path(config.input_path))
    schema_path = Path(config.schema_path or default_schema_path(output_path))
    if strategy_name not in _strategy_factories():
        raise ValueError(f"Unknown strategy '{strategy_name}'. Available: {', '.join(available_strategies())}")

    records = load_records(config.input_path)

    with ProgressReporter(enabled=config.progress, log_every=settings.progress_every) as reporter:
        discovery, discovery_stats = discover_schema(
            records, strategy_name, progress=reporter.phase("discovery")
        )
        schema = discovery["schema"]
        write_schema_artifact(schema_path, schema)
        plan = synthesize_plan(schema)

        log.info("[EXECUTION START]", extra={"records": len(records), "instructions": len(plan)})
        with profile_phase("execution") as execution_stats:
            execution = execute_plan(
                records,
                plan,
                progress=reporter.phase("execution"),
                error_limit=settings.error_message_limit,
            )
            execution_stats.records = len(execution["rows"])
        log.info(
            "[EXECUTION COMPLETE]",
            extra={"rows": len(execution["rows"]), "decode_failures": execution["decode_failures"]},
        )

    columns = plan.columns
    rows_written = write_table(
        output_path,
        columns,
        execution["rows"],
        delimiter=settings.csv_delimiter,
        encoding=settings.output_encoding,
    )

    summary = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "input": str(config.input_path),
        "output": str(output_path),
        "schema_path": str(schema_path),
        "strategy": strategy_name,
        "records": len(records),
        "rows": rows_written,
        "columns": columns,
        "fields": len(schema),
        "complex_fields": len(schema.complex_fields),
        "renamed_fields": {f.name: f.column for f in schema if f.column != f.name},
        "decode_failures": execution["decode_failures"],
        "discovery_decode_failures": discovery.get("decode_failures", 0),
        "exhausted_operations": discovery.get("exhausted_operations", []),
        "unsampled_records": discovery.get("unsampled_records", 0),
        "unplanned_fields": execution["unplanned_fields"],
        "phases": {
            "discovery": discovery_stats.as_dict(),
            "execution": execution_stats.as_dict(),
        },
    }

    if config.persist:
        _persist_results(summary, Path(config.results_dir or settings.results_dir))

    log.info(
        f"[RUN COMPLETE] {rows_written:,} row(s), {len(columns)} column(s)",
        extra={"output": str(output_path), "strategy": strategy_name},
    )
    return summary


__all__ = [
    "RunConfig",
    "available_strategies",
    "default_output_path",
    "discover_schema",
    "run_conversion",
    "strategy_descriptions",
]
