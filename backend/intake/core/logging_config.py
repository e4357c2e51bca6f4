"""
Central logging configuration.

- JSON lines on stdout, shared by the API process and the job queue worker.
- Every line carries the bound context (request_id, job_id, tenant_id,
  persona_id) plus whatever the call site passed in `extra`.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from logging.config import dictConfig

from intake.core.config import settings
from intake.core.request_context import get_context

# Attributes every LogRecord has; anything else on a record came from `extra`.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

QUIET_LOGGERS = ("pdfminer", "pdfplumber", "httpx", "httpcore", "google_genai")


def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **get_context(),
        }
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or key in line:
                continue
            line[key] = _jsonable(value)

        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False)


def configure_logging(level: str | None = None) -> None:
    """Call once at process startup."""
    level = (level or settings.LOG_LEVEL or "INFO").upper()
    console = {"level": level, "handlers": ["console"], "propagate": False}

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JsonFormatter}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "json", "stream": sys.stdout},
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": dict(console),
            "uvicorn.error": dict(console),
            "uvicorn.access": dict(console),
            **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        },
    })
