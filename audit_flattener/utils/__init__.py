"""
Utilities package for the audit flattener.

Exports shared helpers for logging and phase profiling.
Keep this package lightweight and free of audit-record logic.
"""

from audit_flattener.utils.logging import configure_logging, get_logger
from audit_flattener.utils.profiler import PhaseStats, profile_phase

__all__ = [
    "configure_logging",
    "get_logger",
    "PhaseStats",
    "profile_phase",
]
