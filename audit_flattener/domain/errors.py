"""
Error taxonomy for the audit flattener.

`DecodeError` and `SampleExhaustionError` are recovered inside the pipeline
(per record and per operation type respectively). The input errors are fatal
and raised before any record is processed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


class AuditFlattenerError(Exception):
    """Base class for all errors raised by this package."""


class DecodeError(AuditFlattenerError):
    """An AuditData payload is not valid JSON, is truncated, or is not an object."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SampleExhaustionError(AuditFlattenerError):
    """Every candidate record for one operation type failed to decode."""

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(
            f"No decodable AuditData for operation '{operation}' after {attempts} record(s)"
        )
        self.operation = operation
        self.attempts = attempts


class UnsupportedFormatError(AuditFlattenerError):
    """The input file extension is not a known audit export format."""

    def __init__(self, path: Union[str, Path]) -> None:
        suffix = Path(path).suffix or "<none>"
        super().__init__(
            f"Unsupported input format '{suffix}' for {path}. Expected .csv, .xml or .clixml."
        )
        self.path = str(path)


class InputFormatError(AuditFlattenerError):
    """A recognised input file whose content cannot be read as an audit export."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__(f"Cannot read audit export {path}: {reason}")
        self.path = str(path)
        self.reason = reason


__all__ = [
    "AuditFlattenerError",
    "DecodeError",
    "InputFormatError",
    "SampleExhaustionError",
    "UnsupportedFormatError",
]
