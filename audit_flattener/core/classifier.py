"""
Top-level member classification for decoded AuditData documents.

Only the first level of a document is inspected. A member holding a list or a
nested object is COMPLEX (it cannot be copied into a single cell); everything
else, null included, is SCALAR.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Set

from audit_flattener.domain.models import FieldDescriptor, FieldKind, Schema


def classify_value(value: Any) -> FieldKind:
    if isinstance(value, (list, dict)):
        return FieldKind.COMPLEX
    return FieldKind.SCALAR


def classify_members(document: Mapping[str, Any]) -> Dict[str, FieldKind]:
    """Map every top-level member name of `document` to its kind."""
    return {name: classify_value(value) for name, value in document.items()}


@dataclass
class FieldAccumulator:
    """
    Running name sets for one discovery pass.

    A name may be seen as scalar in one record and complex in another. Complex
    wins: raw-text extraction simply yields an empty cell for a scalar
    occurrence, whereas a direct copy of a complex value would not fit a cell.
    """

    scalar: Set[str] = field(default_factory=set)
    complex: Set[str] = field(default_factory=set)
    documents: int = 0

    def merge(self, document: Mapping[str, Any]) -> None:
        for name, kind in classify_members(document).items():
            if kind is FieldKind.COMPLEX:
                self.complex.add(name)
            else:
                self.scalar.add(name)
        self.documents += 1

    def classification(self) -> Dict[str, FieldKind]:
        merged = {name: FieldKind.SCALAR for name in self.scalar}
        merged.update({name: FieldKind.COMPLEX for name in self.complex})
        return merged

    def freeze(self) -> Schema:
        return Schema(
            descriptors=tuple(
                FieldDescriptor(name=name, kind=kind)
                for name, kind in self.classification().items()
            )
        )


__all__ = ["FieldAccumulator", "classify_members", "classify_value"]
