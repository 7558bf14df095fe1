"""
Collision renaming between payload fields and the fixed metadata columns.

Several workloads repeat record metadata inside AuditData (`RecordType`,
`CreationTime`, `UserId`, ...). A payload member whose name equals a metadata
column is emitted under a prefixed name so both columns survive side by side.
"""

from __future__ import annotations

from typing import Iterable, Set

from audit_flattener.domain.models import METADATA_COLUMNS, FieldDescriptor, Schema
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_COLLISION_PREFIX = "AuditData_"


def _unique_name(candidate: str, taken: Set[str]) -> str:
    if candidate not in taken:
        return candidate
    suffix = 2
    while f"{candidate}_{suffix}" in taken:
        suffix += 1
    return f"{candidate}_{suffix}"


def resolve_names(
    schema: Schema,
    metadata_columns: Iterable[str] = METADATA_COLUMNS,
    prefix: str = DEFAULT_COLLISION_PREFIX,
) -> Schema:
    """
    Return a copy of `schema` with `resolved_name` set on every field.

    Non-colliding names resolve to themselves. Colliding names get `prefix`;
    if the prefixed name is itself taken, a numeric suffix is appended.
    """
    metadata = set(metadata_columns)
    taken: Set[str] = metadata | {name for name in schema.names if name not in metadata}

    resolved = []
    for descriptor in schema:
        if descriptor.name in metadata:
            column = _unique_name(f"{prefix}{descriptor.name}", taken)
            taken.add(column)
            log.info(
                f"[RESOLVE] Payload field '{descriptor.name}' renamed to '{column}'",
                extra={"field": descriptor.name, "column": column},
            )
        else:
            column = descriptor.name
        resolved.append(
            FieldDescriptor(name=descriptor.name, resolved_name=column, kind=descriptor.kind)
        )

    return Schema(descriptors=tuple(resolved))


__all__ = ["DEFAULT_COLLISION_PREFIX", "resolve_names"]
