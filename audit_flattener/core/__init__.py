"""
Core pipeline for the audit flattener.

decode → classify → (discover, in `audit_flattener.strategies`) → resolve →
synthesize plan → execute plan.
"""

from audit_flattener.core.classifier import FieldAccumulator, classify_members
from audit_flattener.core.decoder import decode_payload, truncate_error
from audit_flattener.core.executor import ExecutionResult, ProgressCallback, execute_plan
from audit_flattener.core.plan import raw_bracket_extract, synthesize_plan
from audit_flattener.core.resolver import resolve_names

__all__ = [
    "ExecutionResult",
    "FieldAccumulator",
    "ProgressCallback",
    "classify_members",
    "decode_payload",
    "execute_plan",
    "raw_bracket_extract",
    "resolve_names",
    "synthesize_plan",
    "truncate_error",
]
