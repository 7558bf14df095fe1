"""
Domain package for the audit flattener.

Exports the record, schema, and extraction-plan models plus the error taxonomy.
Keep this package focused on data definitions and validation concerns.
"""

from audit_flattener.domain.errors import (
    AuditFlattenerError,
    DecodeError,
    InputFormatError,
    SampleExhaustionError,
    UnsupportedFormatError,
)
from audit_flattener.domain.models import (
    DECODE_ERROR_COLUMN,
    METADATA_COLUMNS,
    AuditRecord,
    ExtractionInstruction,
    ExtractionMode,
    ExtractionPlan,
    FieldDescriptor,
    FieldKind,
    FlattenedRow,
    Schema,
)

__all__ = [
    # Models
    "AuditRecord",
    "ExtractionInstruction",
    "ExtractionMode",
    "ExtractionPlan",
    "FieldDescriptor",
    "FieldKind",
    "FlattenedRow",
    "Schema",
    "DECODE_ERROR_COLUMN",
    "METADATA_COLUMNS",
    # Errors
    "AuditFlattenerError",
    "DecodeError",
    "InputFormatError",
    "SampleExhaustionError",
    "UnsupportedFormatError",
]
