from __future__ import annotations

import csv
from pathlib import Path

import pytest

from audit_flattener.domain.models import FieldDescriptor, FieldKind, FlattenedRow, Schema
from audit_flattener.infrastructure.writer import write_schema_artifact, write_table


def test_write_table_renders_empty_cells(tmp_path: Path, make_record):
    record = make_record("Op", {"a": 1}, UserIds="a@x.com,b@x.com")
    rows = [FlattenedRow(record=record, values={"a": 1})]
    path = tmp_path / "out" / "flat.csv"

    written = write_table(path, ["Operations", "UserIds", "a", "b"], rows)

    with path.open(newline="", encoding="utf-8") as f:
        content = list(csv.reader(f))
    assert written == 1
    assert content == [["Operations", "UserIds", "a", "b"], ["Op", "a@x.com,b@x.com", "1", ""]]


def test_write_table_honours_delimiter(tmp_path: Path, make_record):
    path = tmp_path / "flat.tsv"
    write_table(path, ["Operations"], [FlattenedRow(record=make_record("Op", {}))], delimiter="\t")
    assert path.read_text(encoding="utf-8").splitlines() == ["Operations", "Op"]


def test_write_table_leaves_no_partial_file_on_failure(tmp_path: Path, make_record):
    path = tmp_path / "flat.csv"

    def rows():
        yield FlattenedRow(record=make_record("Op", {}))
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        write_table(path, ["Operations"], rows())

    assert list(tmp_path.iterdir()) == []


def test_write_schema_artifact(tmp_path: Path):
    schema = Schema(
        descriptors=(
            FieldDescriptor(name="RecordType", resolved_name="AuditData_RecordType", kind=FieldKind.SCALAR),
            FieldDescriptor(name="Actor", resolved_name="Actor", kind=FieldKind.COMPLEX),
        )
    )
    path = tmp_path / "fields.csv"

    write_schema_artifact(path, schema)

    with path.open(newline="", encoding="utf-8") as f:
        assert list(csv.reader(f)) == [
            ["Name", "Column", "Kind"],
            ["Actor", "Actor", "complex"],
            ["RecordType", "AuditData_RecordType", "scalar"],
        ]
