"""
Domain models for the audit flattener.

`AuditRecord` mirrors one row of a `Search-UnifiedAuditLog` export. The other
models describe the discovered column schema and the extraction plan derived
from it; they are frozen once built so a plan cannot drift while it is being
applied to the dataset.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

DECODE_ERROR_COLUMN = "AuditDataDecodeError"

# Fixed metadata columns, in output order.
METADATA_COLUMNS: Tuple[str, ...] = (
    "CreationDate",
    "Identity",
    "Operations",
    "RecordType",
    "ResultCount",
    "ResultIndex",
    "UserIds",
    "AuditData",
    DECODE_ERROR_COLUMN,
)


def schema_sort_key(name: str) -> Tuple[str, str]:
    """Case-insensitive alphabetical order with a case-sensitive tie break."""
    return (name.casefold(), name)


class AuditRecord(BaseModel):
    """
    One audit log entry with its raw AuditData payload.

    Only `decode_error` is ever assigned after construction, and only once.
    """

    creation_date: str = Field("", alias="CreationDate", description="Event timestamp as exported.")
    identity: str = Field("", alias="Identity", description="Unique record identity.")
    operations: str = Field("", alias="Operations", description="Operation-type label.")
    record_type: str = Field("", alias="RecordType", description="Workload record type.")
    result_count: Optional[int] = Field(None, alias="ResultCount")
    result_index: Optional[int] = Field(None, alias="ResultIndex")
    user_ids: List[str] = Field(default_factory=list, alias="UserIds")
    audit_data: str = Field("", alias="AuditData", description="Raw JSON payload text.")
    decode_error: Optional[str] = Field(None, alias=DECODE_ERROR_COLUMN)

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator(
        "creation_date", "identity", "operations", "record_type", "audit_data", mode="before"
    )
    @classmethod
    def _text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("result_count", "result_index", mode="before")
    @classmethod
    def _blank_int(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("user_ids", mode="before")
    @classmethod
    def _split_user_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def record_decode_failure(self, message: str) -> None:
        if self.decode_error is None:
            self.decode_error = message

    def metadata_cells(self) -> Dict[str, Any]:
        """Fixed metadata values keyed by output column name."""
        return {
            "CreationDate": self.creation_date,
            "Identity": self.identity,
            "Operations": self.operations,
            "RecordType": self.record_type,
            "ResultCount": self.result_count,
            "ResultIndex": self.result_index,
            "UserIds": ",".join(self.user_ids),
            "AuditData": self.audit_data,
            DECODE_ERROR_COLUMN: self.decode_error,
        }


class FieldKind(str, Enum):
    SCALAR = "scalar"
    COMPLEX = "complex"


class FieldDescriptor(BaseModel):
    """A top-level AuditData member discovered somewhere in the dataset."""

    name: str = Field(..., description="Member name exactly as found in the payload.")
    resolved_name: Optional[str] = Field(None, description="Output column name after collision renaming.")
    kind: FieldKind

    model_config = {"frozen": True}

    @property
    def column(self) -> str:
        return self.resolved_name or self.name


class Schema(BaseModel):
    """
    Frozen set of discovered fields, ordered alphabetically by output column.

    Before name resolution the output column is the payload name itself.
    """

    descriptors: Tuple[FieldDescriptor, ...] = ()

    model_config = {"frozen": True}

    @field_validator("descriptors")
    @classmethod
    def _order_fields(cls, value: Tuple[FieldDescriptor, ...]) -> Tuple[FieldDescriptor, ...]:
        names = [f.name for f in value]
        if len(set(names)) != len(names):
            raise ValueError("schema field names must be unique")
        resolved = [f.resolved_name for f in value if f.resolved_name is not None]
        if len(set(resolved)) != len(resolved):
            raise ValueError("resolved field names must be unique")
        return tuple(sorted(value, key=lambda f: schema_sort_key(f.column)))

    def __iter__(self) -> Iterator[FieldDescriptor]:  # type: ignore[override]
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.descriptors]

    @property
    def columns(self) -> List[str]:
        return [f.column for f in self.descriptors]

    @property
    def complex_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.descriptors if f.kind is FieldKind.COMPLEX]

    @property
    def scalar_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.descriptors if f.kind is FieldKind.SCALAR]


class ExtractionMode(str, Enum):
    DIRECT_COPY = "direct_copy"
    RAW_BRACKET_EXTRACT = "raw_bracket_extract"


_MODE_BY_KIND = {
    FieldKind.SCALAR: ExtractionMode.DIRECT_COPY,
    FieldKind.COMPLEX: ExtractionMode.RAW_BRACKET_EXTRACT,
}


class ExtractionInstruction(BaseModel):
    field: FieldDescriptor
    mode: ExtractionMode

    model_config = {"frozen": True}

    @classmethod
    def for_field(cls, field: FieldDescriptor) -> "ExtractionInstruction":
        return cls(field=field, mode=_MODE_BY_KIND[field.kind])

    @model_validator(mode="after")
    def _mode_matches_kind(self) -> "ExtractionInstruction":
        if self.mode is not _MODE_BY_KIND[self.field.kind]:
            raise ValueError(
                f"field '{self.field.name}' is {self.field.kind.value}; "
                f"mode {self.mode.value} does not apply"
            )
        return self


class ExtractionPlan(BaseModel):
    """Ordered per-field instructions applied to every record."""

    instructions: Tuple[ExtractionInstruction, ...] = ()

    model_config = {"frozen": True}

    def __iter__(self) -> Iterator[ExtractionInstruction]:  # type: ignore[override]
        return iter(self.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    @property
    def field_columns(self) -> List[str]:
        return [i.field.column for i in self.instructions]

    @property
    def columns(self) -> List[str]:
        return list(METADATA_COLUMNS) + self.field_columns


class FlattenedRow(BaseModel):
    """One output row: the source record plus its extracted payload values."""

    record: AuditRecord
    values: Dict[str, Any] = Field(default_factory=dict)

    def cells(self, columns: List[str]) -> List[Any]:
        merged = self.record.metadata_cells()
        merged.update(self.values)
        return [merged.get(column) for column in columns]


__all__ = [
    "AuditRecord",
    "DECODE_ERROR_COLUMN",
    "ExtractionInstruction",
    "ExtractionMode",
    "ExtractionPlan",
    "FieldDescriptor",
    "FieldKind",
    "FlattenedRow",
    "METADATA_COLUMNS",
    "Schema",
    "schema_sort_key",
]
