"""
Abstract discovery-strategy interfaces and result contracts.

Concrete strategies (exhaustive, sampled-by-operation) implement the
DiscoveryStrategy protocol and return a DiscoveryResult TypedDict so the
orchestrator and reporter can treat them uniformly.
"""

from __future__ import annotations

import abc
from typing import List, Optional, Protocol, Sequence, TypedDict, runtime_checkable

from audit_flattener.core.executor import ProgressCallback
from audit_flattener.domain.models import AuditRecord, Schema


class DiscoveryResult(TypedDict, total=False):
    """
    Outcome of one discovery pass.

    `schema` is always present; the counters are diagnostics and reporters
    should tolerate missing values.
    """

    schema: Schema
    records_scanned: int
    decode_failures: int
    operations: int
    exhausted_operations: List[str]
    unsampled_records: int
    notes: Optional[str]


@runtime_checkable
class DiscoveryStrategy(Protocol):
    """
    Common interface all discovery strategies must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the approach.
    """

    name: str
    description: str

    def discover(
        self,
        records: Sequence[AuditRecord],
        progress: Optional[ProgressCallback] = None,
    ) -> DiscoveryResult:
        """
        Infer the field schema of the dataset.

        Parameters
        ----------
        records : Sequence[AuditRecord]
            The full in-memory dataset.
        progress : ProgressCallback | None
            Optional observer called as progress(processed, total).

        Returns
        -------
        DiscoveryResult
            The frozen (unresolved) schema plus pass diagnostics.
        """
        ...


class AbstractDiscoveryStrategy(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses should set `name` and `description` and implement `discover`.
    """

    name: str
    description: str

    @abc.abstractmethod
    def discover(
        self,
        records: Sequence[AuditRecord],
        progress: Optional[ProgressCallback] = None,
    ) -> DiscoveryResult:  # pragma: no cover - interface only
        """Run discovery and return the schema."""
        raise NotImplementedError


__all__ = [
    "AbstractDiscoveryStrategy",
    "DiscoveryResult",
    "DiscoveryStrategy",
]
