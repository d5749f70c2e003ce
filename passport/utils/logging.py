"""
Logging setup shared by the CLI, shell, loader script and the in-process
network (peer, orderer, world state).

Records go to stderr so stdout stays free for JSON results. The console format
is meant for people; `LOG_JSON=true` switches to one JSON object per line,
with anything passed through `extra=` (tx ids, validation codes, keys) lifted
to top-level fields.

    configure_logging(level="DEBUG", json_logs=True)
    log = get_logger(__name__)
    log.info("Transaction committed", extra={"tx_id": tx_id, "code": "VALID"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("psycopg", "psycopg.pool")


def _json_formatter(record: logging.LogRecord) -> str:
    payload: Dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and key != "extra"
    )
    # Older call sites pass extra={"extra": {...}}.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def _dict_config(level: str, formatter: str) -> Dict[str, Any]:
    quiet_level = "DEBUG" if level.upper() == "DEBUG" else "WARNING"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                "datefmt": "%H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": formatter,
                "level": level,
            }
        },
        "loggers": {name: {"level": quiet_level} for name in _QUIET_LOGGERS},
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure root logging for a CLI run.

    Parameters
    ----------
    level : str
        Level name for the root logger ("DEBUG", "INFO", ...). psycopg loggers
        stay at WARNING unless this is DEBUG.
    json_logs : bool
        Emit JSON lines instead of the console format.
    """
    logging.config.dictConfig(_dict_config(level, "json" if json_logs else "console"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
