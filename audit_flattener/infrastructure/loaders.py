"""
Audit export loaders.

Two export shapes of `Search-UnifiedAuditLog` output are supported:
- `.xml` / `.clixml`: PowerShell `Export-Clixml` object stream
- `.csv`: `Export-Csv` output, optionally starting with a `#TYPE` line

The format is chosen by file extension before anything is read, so an
unsupported input fails without partial processing.
"""

from __future__ import annotations

import csv
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from pydantic import ValidationError

from audit_flattener.domain.errors import InputFormatError, UnsupportedFormatError
from audit_flattener.domain.models import AuditRecord
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)

# AuditData cells regularly exceed the csv module's default 128 KiB limit.
CSV_FIELD_SIZE_LIMIT = 2**31 - 1

_CLIXML_ESCAPE = re.compile(r"_x([0-9A-Fa-f]{4})_")
_CLIXML_TYPED = {"S", "DT", "I16", "I32", "I64", "U16", "U32", "U64", "G", "B", "Db", "D", "SBK", "URI"}


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _unescape_clixml(text: str) -> str:
    """Decode CLIXML `_xHHHH_` character escapes (e.g. `_x000D__x000A_`)."""
    return _CLIXML_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), text)


def _clixml_value(element: ET.Element) -> Optional[str]:
    tag = _local(element.tag)
    if tag == "Nil":
        return None
    if tag in _CLIXML_TYPED:
        return _unescape_clixml(element.text or "")
    if tag == "Obj":
        # Enums and other wrapped values carry their display form in ToString.
        for child in element:
            if _local(child.tag) == "ToString":
                return _unescape_clixml(child.text or "")
        return None
    return _unescape_clixml(element.text or "")


def _iter_clixml_objects(path: Path) -> Iterator[Dict[str, Any]]:
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise InputFormatError(path, f"malformed CLIXML ({exc})") from exc

    if _local(root.tag) != "Objs":
        raise InputFormatError(path, f"expected <Objs> root element, found <{_local(root.tag)}>")

    for obj in root:
        if _local(obj.tag) != "Obj":
            continue
        properties: Dict[str, Any] = {}
        for container in obj:
            if _local(container.tag) not in ("Props", "MS"):
                continue
            for prop in container:
                name = prop.get("N")
                if name is not None:
                    properties[name] = _clixml_value(prop)
        yield properties


def _iter_csv_rows(path: Path) -> Iterator[Dict[str, Any]]:
    csv.field_size_limit(CSV_FIELD_SIZE_LIMIT)
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        first = f.readline()
        if not first.startswith("#TYPE"):
            f.seek(0)
        reader = csv.DictReader(f)
        if not reader.fieldnames or "AuditData" not in reader.fieldnames:
            raise InputFormatError(path, "CSV header has no AuditData column")
        for row in reader:
            # Surplus cells of a ragged row land under the None key.
            yield {name: value for name, value in row.items() if name is not None}


_READERS: Dict[str, Callable[[Path], Iterator[Dict[str, Any]]]] = {
    ".xml": _iter_clixml_objects,
    ".clixml": _iter_clixml_objects,
    ".csv": _iter_csv_rows,
}


def supported_extensions() -> List[str]:
    return sorted(_READERS)


def load_records(path: Union[str, Path]) -> List[AuditRecord]:
    """
    Read an audit export into memory, preserving file order.

    Raises
    ------
    UnsupportedFormatError
        If the file extension is not a supported export format.
    InputFormatError
        If the file content does not look like an audit export.
    FileNotFoundError
        If the file does not exist.
    """
    path = Path(path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise UnsupportedFormatError(path)
    if not path.is_file():
        raise FileNotFoundError(f"Input not found: {path}")

    records: List[AuditRecord] = []
    for position, raw in enumerate(reader(path), start=1):
        try:
            records.append(AuditRecord.model_validate(raw))
        except ValidationError as exc:
            raise InputFormatError(path, f"record {position}: {exc.errors()[0]['msg']}") from exc

    log.info(
        f"Loaded {len(records):,} audit record(s) from {path.name}",
        extra={"input": str(path), "records": len(records)},
    )
    return records


__all__ = ["load_records", "supported_extensions"]
