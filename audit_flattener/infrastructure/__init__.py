"""
Infrastructure package for the audit flattener.

File I/O around the core pipeline: reading audit exports and writing the
flattened table. Keep this layer focused on formats and file lifecycle,
decoupled from discovery and plan logic.
"""

from audit_flattener.infrastructure.loaders import load_records, supported_extensions
from audit_flattener.infrastructure.writer import write_schema_artifact, write_table

__all__ = [
    "load_records",
    "supported_extensions",
    "write_schema_artifact",
    "write_table",
]
