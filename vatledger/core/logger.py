"""Process-wide logging for the VAT ledger service.

Services log with ``extra={"tenant_id": ...}``; the JSON formatter lifts
those keys into an ``extra`` object so log shippers can filter by tenant.
"""
from __future__ import annotations

import json
import logging
import sys
from typing import Any

from vatledger.core.config import settings

PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _caller_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if not key.startswith("_") and key not in _STANDARD_ATTRS
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with the service name."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "service": settings.APP_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        extra = {k: v for k, v in _caller_fields(record).items() if k not in entry}
        if extra:
            entry["extra"] = extra
        return json.dumps(entry, default=str)


def _resolve_level(level: int | None) -> int:
    if level is not None:
        return level
    return getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)


def init_logging(level: int | None = None) -> None:
    """Attach a stdout handler to the root logger unless one is already set."""
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    root.setLevel(_resolve_level(level))
    root.addHandler(handler)
