"""
Extraction plan synthesis and the raw-text extraction used for complex fields.

The plan is built once per run from the resolved schema and then interpreted
for every record by the executor. Scalar fields are copied from the decoded
document; complex array fields are cut out of the original AuditData text so
the cell holds the payload exactly as exported. Complex members with no
bracketed text in a row (objects, or a stray scalar) are written from the
decoded value instead.
"""

from __future__ import annotations

from typing import Optional

from audit_flattener.domain.models import ExtractionInstruction, ExtractionPlan, Schema
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)

# A complex field followed by a sibling member closes with "],"; the last
# member of the document closes with "]}".
SIBLING_CLOSE = "],"
DOCUMENT_CLOSE = "]}"


def synthesize_plan(schema: Schema) -> ExtractionPlan:
    """Build one instruction per schema field, in schema order."""
    plan = ExtractionPlan(
        instructions=tuple(ExtractionInstruction.for_field(field) for field in schema)
    )
    log.debug(
        "Extraction plan synthesized",
        extra={
            "instructions": len(plan),
            "raw_bracket_fields": len(schema.complex_fields),
        },
    )
    return plan


def raw_bracket_extract(text: str, name: str) -> Optional[str]:
    """
    Cut the `"name":[...]` member out of raw AuditData text.

    Returns the literal substring from the opening quote of the key through the
    closing pair (`],` or `]}`) inclusive, or None when the array member is not
    present in this payload.

    This is a two-candidate search, not a bracket matcher: an array whose own
    elements contain `],` before its true end (arrays nested inside the array)
    is cut at that inner position.
    """
    start = text.find(f'"{name}":[')
    if start < 0:
        return None

    end = text.find(SIBLING_CLOSE, start + 1)
    if end <= start:
        end = text.find(DOCUMENT_CLOSE, start + 1)
    if end <= start:
        return None
    return text[start : end + 2]


__all__ = ["DOCUMENT_CLOSE", "SIBLING_CLOSE", "raw_bracket_extract", "synthesize_plan"]
