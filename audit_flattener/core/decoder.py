"""
AuditData payload decoding.

Decode failures are expected in real exports (truncated payloads are common in
very large searches), so callers recover from `DecodeError` per record and keep
only a truncated copy of the message: json error messages can be long and the
failing document is already in the AuditData column.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from audit_flattener.domain.errors import DecodeError

DEFAULT_ERROR_LIMIT = 100


def decode_payload(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse one AuditData payload into a dict.

    Raises
    ------
    DecodeError
        If the text is empty, is not valid JSON, or is not a JSON object.
    """
    if text is None or not text.strip():
        raise DecodeError("AuditData is empty")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid AuditData JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise DecodeError(
            f"AuditData must be a JSON object, got {type(document).__name__}: {text}"
        )
    return document


def truncate_error(message: str, limit: int = DEFAULT_ERROR_LIMIT) -> str:
    return message[:limit]


__all__ = ["DEFAULT_ERROR_LIMIT", "decode_payload", "truncate_error"]
