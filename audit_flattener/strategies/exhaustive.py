"""
Exhaustive discovery: decode and classify every record.

The correctness-maximizing baseline. Use it when records of the same operation
type may carry different member sets. Cost is linear in dataset size, which on
exports of several hundred thousand rows means a long run.
"""

from __future__ import annotations

from typing import Optional, Sequence

from audit_flattener.core.classifier import FieldAccumulator
from audit_flattener.core.decoder import decode_payload
from audit_flattener.core.executor import ProgressCallback
from audit_flattener.domain.errors import DecodeError
from audit_flattener.domain.models import AuditRecord
from audit_flattener.strategies.abstract import AbstractDiscoveryStrategy, DiscoveryResult
from audit_flattener.utils.logging import get_logger

log = get_logger(__name__)


class ExhaustiveStrategy(AbstractDiscoveryStrategy):
    """
    Merge the top-level members of every decodable record into one schema.

    Records that fail to decode contribute nothing and are not retried.
    """

    name: str = "exhaustive"
    description: str = "Decode every record (slow, catches per-record shape variance)."

    def discover(
        self,
        records: Sequence[AuditRecord],
        progress: Optional[ProgressCallback] = None,
    ) -> DiscoveryResult:
        accumulator = FieldAccumulator()
        decode_failures = 0
        total = len(records)

        for scanned, record in enumerate(records, start=1):
            try:
                document = decode_payload(record.audit_data)
            except DecodeError:
                decode_failures += 1
            else:
                accumulator.merge(document)
            if progress is not None:
                progress(scanned, total)

        schema = accumulator.freeze()
        log.info(
            f"[DISCOVERY] {self.name}: {len(schema)} field(s) from {accumulator.documents} document(s)",
            extra={"strategy": self.name, "fields": len(schema), "decode_failures": decode_failures},
        )

        return DiscoveryResult(
            schema=schema,
            records_scanned=total,
            decode_failures=decode_failures,
            operations=len({record.operations for record in records}),
            exhausted_operations=[],
            unsampled_records=0,
            notes="Every record decoded; failed decodes skipped.",
        )


__all__ = ["ExhaustiveStrategy"]
