"""
Audit Flattener - turn Unified Audit Log exports into one flat table.

Each audit record carries an AuditData JSON payload whose shape depends on the
record's operation. This package infers a single column schema across the
dataset and applies it uniformly:

- Discovery, exhaustive or sampled one record per operation type
- Scalar/complex classification of top-level payload members
- Collision renaming against the fixed record metadata columns
- A data-driven extraction plan applied to every record

Complex (array) members are copied as the literal text of the original payload.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from audit_flattener.config import Settings, get_settings
from audit_flattener.core import (
    execute_plan,
    raw_bracket_extract,
    resolve_names,
    synthesize_plan,
)
from audit_flattener.domain import (
    AuditRecord,
    ExtractionPlan,
    FieldDescriptor,
    FieldKind,
    FlattenedRow,
    Schema,
)
from audit_flattener.orchestrator import (
    RunConfig,
    available_strategies,
    discover_schema,
    run_conversion,
)
from audit_flattener.strategies import (
    AbstractDiscoveryStrategy,
    DiscoveryResult,
    DiscoveryStrategy,
)
from audit_flattener.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Orchestration
    "RunConfig",
    "available_strategies",
    "discover_schema",
    "run_conversion",
    # Pipeline
    "execute_plan",
    "raw_bracket_extract",
    "resolve_names",
    "synthesize_plan",
    # Models
    "AuditRecord",
    "ExtractionPlan",
    "FieldDescriptor",
    "FieldKind",
    "FlattenedRow",
    "Schema",
    # Strategy abstractions
    "AbstractDiscoveryStrategy",
    "DiscoveryResult",
    "DiscoveryStrategy",
    # Logging
    "configure_logging",
    "get_logger",
]
