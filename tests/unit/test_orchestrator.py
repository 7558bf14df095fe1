from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from audit_flattener import orchestrator
from audit_flattener.domain.errors import UnsupportedFormatError
from audit_flattener.domain.models import DECODE_ERROR_COLUMN, METADATA_COLUMNS
from audit_flattener.orchestrator import RunConfig, default_output_path, discover_schema, run_conversion

SCENARIO_CSV = (
    "CreationDate,Identity,Operations,RecordType,ResultCount,ResultIndex,UserIds,AuditData\n"
    '2024-01-01T00:00:01,r1,A,ExchangeAdmin,3,1,u@x.com,"{""x"":1}"\n'
    '2024-01-01T00:00:02,r2,A,ExchangeAdmin,3,2,u@x.com,"{""x"":"\n'
    '2024-01-01T00:00:03,r3,B,ExchangeAdmin,3,3,u@x.com,"{""y"":[1,2]}"\n'
)


@pytest.fixture
def scenario_csv(tmp_path: Path) -> Path:
    path = tmp_path / "scenario.csv"
    path.write_text(SCENARIO_CSV, encoding="utf-8")
    return path


def _read(path: Path) -> list[dict[str, str]]:
    with path.open(newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


@pytest.mark.parametrize("strategy", ["sampled", "exhaustive"])
def test_run_conversion_scenario(scenario_csv: Path, tmp_path: Path, strategy: str):
    output = tmp_path / "flat.csv"

    summary = run_conversion(
        RunConfig(input_path=scenario_csv, output_path=output, strategy=strategy, progress=False)
    )

    rows = _read(output)
    assert summary["columns"] == list(METADATA_COLUMNS) + ["x", "y"]
    assert list(rows[0]) == summary["columns"]
    assert [r["Identity"] for r in rows] == ["r1", "r2", "r3"]
    assert (rows[0]["x"], rows[0]["y"]) == ("1", "")
    assert rows[1][DECODE_ERROR_COLUMN] != ""
    assert (rows[1]["x"], rows[1]["y"]) == ("", "")
    assert (rows[2]["x"], rows[2]["y"]) == ("", '"y":[1,2]}')
    assert summary["rows"] == summary["records"] == 3
    assert summary["decode_failures"] == 1


def test_run_conversion_writes_schema_artifact_and_summary(scenario_csv: Path, tmp_path: Path):
    results_dir = tmp_path / "results"

    summary = run_conversion(
        RunConfig(input_path=scenario_csv, results_dir=results_dir, progress=False)
    )

    assert Path(summary["output"]) == default_output_path(scenario_csv)
    assert Path(summary["schema_path"]).exists()
    latest = json.loads((results_dir / "latest.json").read_text(encoding="utf-8"))
    assert latest["rows"] == 3
    assert set(latest["phases"]) == {"discovery", "execution"}
    assert len(list(results_dir.glob("run-*.json"))) == 1


def test_run_conversion_without_persist_writes_no_summary(scenario_csv: Path, tmp_path: Path):
    run_conversion(
        RunConfig(input_path=scenario_csv, results_dir=tmp_path / "results", persist=False, progress=False)
    )
    assert not (tmp_path / "results").exists()


def test_unsupported_format_produces_no_output(tmp_path: Path):
    source = tmp_path / "audit.json"
    source.write_text("[]", encoding="utf-8")

    with pytest.raises(UnsupportedFormatError):
        run_conversion(RunConfig(input_path=source, output_path=tmp_path / "flat.csv", progress=False))

    assert not (tmp_path / "flat.csv").exists()


def test_unknown_strategy_fails_before_loading(monkeypatch, scenario_csv: Path):
    def fail_load(path):
        raise AssertionError("input should not be read")

    monkeypatch.setattr(orchestrator, "load_records", fail_load)

    with pytest.raises(ValueError, match="Unknown strategy"):
        run_conversion(RunConfig(input_path=scenario_csv, strategy="bogus", progress=False))


def test_collision_column_sits_beside_metadata(make_record):
    records = [make_record("Op", {"RecordType": 1, "Id": "a"})]

    result, stats = discover_schema(records, "exhaustive")

    assert result["schema"].columns == ["AuditData_RecordType", "Id"]
    assert stats.label == "discovery"


def test_collision_prefix_comes_from_settings(monkeypatch, make_record):
    monkeypatch.setenv("COLLISION_PREFIX", "Payload_")
    orchestrator.get_settings.cache_clear()

    result, _ = discover_schema([make_record("Op", {"Operations": "x"})], "sampled")

    assert result["schema"].columns == ["Payload_Operations"]


def test_strategy_registry_can_be_extended(monkeypatch, make_record):
    class _FixedStrategy:
        name = "fixed"
        description = "returns a precomputed schema"

        def discover(self, records, progress=None):
            from audit_flattener.core.classifier import FieldAccumulator

            accumulator = FieldAccumulator()
            accumulator.merge({"only": 1})
            return {"schema": accumulator.freeze(), "records_scanned": 0}

    monkeypatch.setattr(orchestrator, "_strategy_factories", lambda: {"fixed": _FixedStrategy})

    result, _ = discover_schema([make_record("Op", {"a": 1})], "fixed")

    assert result["schema"].names == ["only"]
