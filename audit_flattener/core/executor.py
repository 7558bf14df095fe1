"""
Plan execution: apply one extraction plan to every record of the dataset.

Exactly one FlattenedRow is produced per input record, in input order. Records
whose AuditData does not decode are still emitted, with the truncated decode
message in the AuditDataDecodeError column and every payload column empty.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypedDict

from audit_flattener.core.decoder import DEFAULT_ERROR_LIMIT, decode_payload, truncate_error
from audit_flattener.core.plan import raw_bracket_extract
from audit_flattener.domain.errors import DecodeError
from audit_flattener.domain.models import (
    AuditRecord,
    ExtractionInstruction,
    ExtractionMode,
    ExtractionPlan,
    FlattenedRow,
)
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)

# Called as progress(processed, total). Must not affect results.
ProgressCallback = Callable[[int, int], None]


class ExecutionResult(TypedDict):
    rows: List[FlattenedRow]
    decode_failures: int
    unplanned_fields: Dict[str, int]


def _direct_copy(document: Mapping[str, Any], name: str) -> Any:
    value = document[name]
    # Objects, and arrays of a member the sample saw as scalar.
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return value


def _apply(
    instruction: ExtractionInstruction, record: AuditRecord, document: Mapping[str, Any]
) -> Optional[Any]:
    name = instruction.field.name
    if name not in document:
        return None
    if instruction.mode is ExtractionMode.RAW_BRACKET_EXTRACT:
        extracted = raw_bracket_extract(record.audit_data, name)
        if extracted is not None:
            return extracted
    # Object members and scalar occurrences of a complex field have no
    # bracketed text to cut; they are written from the decoded value.
    return _direct_copy(document, name)


def execute_plan(
    records: Sequence[AuditRecord],
    plan: ExtractionPlan,
    progress: Optional[ProgressCallback] = None,
    error_limit: int = DEFAULT_ERROR_LIMIT,
) -> ExecutionResult:
    """
    Flatten every record with `plan`.

    Parameters
    ----------
    records : Sequence[AuditRecord]
        The full dataset, in output order.
    plan : ExtractionPlan
        Instructions synthesized from the resolved schema.
    progress : ProgressCallback | None
        Optional observer notified after each record.
    error_limit : int
        Number of characters of a decode error kept on the record.

    Returns
    -------
    ExecutionResult
        Rows in input order, the decode failure count, and the top-level
        member names seen in decoded rows that the plan does not cover.
    """
    planned = {instruction.field.name for instruction in plan}
    unplanned: Counter[str] = Counter()
    rows: List[FlattenedRow] = []
    decode_failures = 0
    total = len(records)

    for processed, record in enumerate(records, start=1):
        values: Dict[str, Any] = {}
        try:
            document = decode_payload(record.audit_data)
        except DecodeError as exc:
            decode_failures += 1
            record.record_decode_failure(truncate_error(exc.message, error_limit))
            log.debug(
                "AuditData decode failed",
                extra={"identity": record.identity, "operation": record.operations},
            )
        else:
            for instruction in plan:
                value = _apply(instruction, record, document)
                if value is not None:
                    values[instruction.field.column] = value
            unplanned.update(name for name in document if name not in planned)

        rows.append(FlattenedRow(record=record, values=values))
        if progress is not None:
            progress(processed, total)

    if unplanned:
        log.warning(
            f"[EXECUTION] {len(unplanned)} payload field(s) were not in the discovered schema",
            extra={"unplanned_fields": sorted(unplanned)},
        )

    return ExecutionResult(
        rows=rows,
        decode_failures=decode_failures,
        unplanned_fields=dict(sorted(unplanned.items())),
    )


__all__ = ["ExecutionResult", "ProgressCallback", "execute_plan"]
