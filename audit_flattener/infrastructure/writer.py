"""
Delimited output for flattened rows and the schema side artifact.

The table is written to a temporary file in the destination directory and
moved into place only after the last row is written, so a failed run never
leaves a partial output file behind.
"""

from __future__ import annotations

import csv
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Union

from audit_flattener.domain.models import FlattenedRow, Schema
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    return value


def write_table(
    path: Union[str, Path],
    columns: List[str],
    rows: Iterable[FlattenedRow],
    delimiter: str = ",",
    encoding: str = "utf-8",
) -> int:
    """
    Write `rows` under a header of `columns`. Returns the number of data rows.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    written = 0
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            writer = csv.writer(f, delimiter=delimiter)
            writer.writerow(columns)
            for row in rows:
                writer.writerow([_cell(value) for value in row.cells(columns)])
                written += 1
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    log.info(
        f"Wrote {written:,} row(s) x {len(columns)} column(s) to {path}",
        extra={"output": str(path), "rows": written, "columns": len(columns)},
    )
    return written


def write_schema_artifact(path: Union[str, Path], schema: Schema) -> None:
    """Persist the discovered fields (name, output column, kind) for auditing."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Name", "Column", "Kind"])
        for field in schema:
            writer.writerow([field.name, field.column, field.kind.value])
    log.info("Schema artifact written", extra={"schema_path": str(path), "fields": len(schema)})


__all__ = ["write_schema_artifact", "write_table"]
