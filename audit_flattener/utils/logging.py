"""
Run logging for audit flattening.

Every stage logs through the standard library: the loader reports what it
read, discovery reports operations sampled and exhausted, the resolver reports
each renamed column, the executor reports decode failures and unplanned
fields, and the orchestrator brackets each stage with tags such as
`[DISCOVERY START]` and `[EXECUTION COMPLETE]`.

Console output goes to stderr so a run piped to another tool keeps stdout for
the rich tables. With LOG_JSON=true each line is a JSON object carrying the
stage tag as `phase` and the `extra=` context (strategy, operation, counts,
paths) as top-level keys.

Usage:
    from audit_flattener.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.info("[DISCOVERY START] sampled", extra={"strategy": "sampled", "records": 1200})
"""

from __future__ import annotations

import json
import logging
import logging.config
import re
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else was passed through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys() | {"message", "asctime"}
)

# Leading stage tag of a message, e.g. "[EXECUTION COMPLETE]" or "[RESOLVE]".
_PHASE_TAG = re.compile(r"^\[([A-Z][A-Z ]*)\]")


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a run log record as one JSON line."""
    message = record.getMessage()
    payload: Dict[str, Any] = {
        "ts": logging.Formatter().formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        "level": record.levelname,
        "logger": record.name,
        "message": message,
    }
    tag = _PHASE_TAG.match(message)
    if tag:
        payload["phase"] = tag.group(1)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    for key, value in vars(record).items():
        if key in _RESERVED_ATTRS or key == "extra":
            continue
        payload[key] = value
    # A nested `extra` dict is flattened alongside the promoted keys.
    if hasattr(record, "extra") and isinstance(record.extra, dict):
        payload.update(record.extra)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """JSON lines formatter for collected run logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Whether to emit logs as JSON. If False, uses a concise human formatter.
    force : bool
        Whether to drop handlers installed by an earlier configuration.
    """
    if not force and logging.getLogger().handlers:
        return

    formatter_name = "json" if json_logs else "console"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter_name,
                    "level": level.upper(),
                    "stream": "ext://sys.stderr",
                }
            },
            "root": {
                "handlers": ["default"],
                "level": level.upper(),
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
