"""
Sampled-by-operation discovery: one representative record per operation type.

Assumes every record sharing an `Operations` label has the same AuditData
shape. Cost scales with the number of distinct operations rather than the
dataset size. When the assumption does not hold, members that only appear in
non-representative records are left out of the schema; the executor reports
them as unplanned fields.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from audit_flattener.core.classifier import FieldAccumulator
from audit_flattener.core.decoder import decode_payload
from audit_flattener.core.executor import ProgressCallback
from audit_flattener.domain.errors import DecodeError, SampleExhaustionError
from audit_flattener.domain.models import AuditRecord
from audit_flattener.strategies.abstract import AbstractDiscoveryStrategy, DiscoveryResult
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)


def _first_decodable(operation: str, candidates: List[AuditRecord]) -> Tuple[Dict[str, Any], int]:
    """
    Return the first candidate payload that decodes and how many were tried.

    Raises
    ------
    SampleExhaustionError
        If no candidate decodes.
    """
    for attempts, candidate in enumerate(candidates, start=1):
        try:
            return decode_payload(candidate.audit_data), attempts
        except DecodeError:
            continue
    raise SampleExhaustionError(operation, len(candidates))


class SampledStrategy(AbstractDiscoveryStrategy):
    """
    Classify the first decodable record of each distinct operation type.
    """

    name: str = "sampled"
    description: str = "One decodable record per Operations value (fast, assumes uniform shapes)."

    def discover(
        self,
        records: Sequence[AuditRecord],
        progress: Optional[ProgressCallback] = None,
    ) -> DiscoveryResult:
        accumulator = FieldAccumulator()
        groups: Dict[str, List[AuditRecord]] = defaultdict(list)
        for record in records:
            groups[record.operations].append(record)
        operations = sorted(groups)
        exhausted: List[str] = []
        records_scanned = 0
        decode_failures = 0

        for index, operation in enumerate(operations, start=1):
            candidates = groups.pop(operation)
            try:
                document, attempts = _first_decodable(operation, candidates)
            except SampleExhaustionError as exc:
                exhausted.append(operation)
                records_scanned += exc.attempts
                decode_failures += exc.attempts
                log.warning(
                    f"[DISCOVERY] {exc}",
                    extra={"strategy": self.name, "operation": operation},
                )
            else:
                accumulator.merge(document)
                records_scanned += attempts
                decode_failures += attempts - 1
            finally:
                del candidates
            if progress is not None:
                progress(index, len(operations))

        schema = accumulator.freeze()
        unsampled = len(records) - records_scanned
        log.info(
            f"[DISCOVERY] {self.name}: {len(schema)} field(s) from {len(operations)} operation(s)",
            extra={
                "strategy": self.name,
                "fields": len(schema),
                "exhausted_operations": exhausted,
                "unsampled_records": unsampled,
            },
        )

        return DiscoveryResult(
            schema=schema,
            records_scanned=records_scanned,
            decode_failures=decode_failures,
            operations=len(operations),
            exhausted_operations=exhausted,
            unsampled_records=unsampled,
            notes=(
                f"{unsampled} record(s) not inspected; fields unique to them are "
                "reported as unplanned during execution."
            ),
        )


__all__ = ["SampledStrategy"]
