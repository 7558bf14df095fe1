from __future__ import annotations

import pytest

from audit_flattener.core.resolver import resolve_names
from audit_flattener.domain.models import METADATA_COLUMNS, FieldDescriptor, FieldKind, Schema


def _schema(*names: str) -> Schema:
    return Schema(descriptors=tuple(FieldDescriptor(name=n, kind=FieldKind.SCALAR) for n in names))


def test_non_colliding_names_resolve_to_themselves():
    resolved = resolve_names(_schema("ClientIP", "Workload"))
    assert resolved.columns == ["ClientIP", "Workload"]
    assert all(f.resolved_name == f.name for f in resolved)


def test_metadata_collision_gets_prefix():
    resolved = resolve_names(_schema("RecordType", "UserId"))

    by_name = {f.name: f.column for f in resolved}
    assert by_name["RecordType"] == "AuditData_RecordType"
    assert by_name["UserId"] == "UserId"


def test_custom_prefix():
    resolved = resolve_names(_schema("Operations"), prefix="Payload.")
    assert resolved.columns == ["Payload.Operations"]


def test_prefixed_name_that_is_already_taken_gets_suffix():
    resolved = resolve_names(_schema("RecordType", "AuditData_RecordType"))

    by_name = {f.name: f.column for f in resolved}
    assert by_name["AuditData_RecordType"] == "AuditData_RecordType"
    assert by_name["RecordType"] == "AuditData_RecordType_2"


def test_resolved_columns_are_unique_and_distinct_from_metadata():
    resolved = resolve_names(_schema(*METADATA_COLUMNS, "Id"))

    columns = resolved.columns
    assert len(set(columns)) == len(columns)
    assert not set(columns) & set(METADATA_COLUMNS)


def test_schema_rejects_duplicate_resolved_names():
    with pytest.raises(ValueError):
        Schema(
            descriptors=(
                FieldDescriptor(name="a", resolved_name="x", kind=FieldKind.SCALAR),
                FieldDescriptor(name="b", resolved_name="x", kind=FieldKind.SCALAR),
            )
        )


def test_renamed_fields_are_ordered_by_output_column():
    resolved = resolve_names(_schema("RecordType", "Id", "Workload"))

    assert resolved.columns == ["AuditData_RecordType", "Id", "Workload"]
    assert resolved.names == ["RecordType", "Id", "Workload"]
