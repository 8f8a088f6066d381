"""
Logging configuration.

- Console output with coloured levels for local development.
- Rotating JSON log file for aggregation, plus an error-only file.
- Request correlation: :class:`RequestIDMiddleware` stores the request ID in
  :data:`request_id_ctx`, and :class:`RequestIDFilter` copies it onto every
  record so log lines from the router, services and repositories can be tied
  back to one HTTP call.

Call ``setup_logging()`` once during application startup.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from globaledge.core.config import settings

LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FILE = os.path.join(LOG_DIR, "globaledge.log")
ERROR_LOG_FILE = os.path.join(LOG_DIR, "globaledge-error.log")

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes passed via ``extra=`` that are worth keeping in structured output.
_EXTRA_FIELDS = (
    "status_code",
    "method",
    "path",
    "elapsed_ms",
    "entity",
    "operation",
    "source",
)


class RequestIDFilter(logging.Filter):
    """Attach the current request ID (if any) to each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_ctx.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Output example::

        {"timestamp": "2025-02-17T10:30:00.123+00:00", "level": "WARNING",
         "logger": "globaledge.integration.router",
         "message": "assets list fell back to mock data", "source": "mock",
         "request_id": "6c1f..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with ANSI-coloured levels."""

    COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S"
        )
        request_id = getattr(record, "request_id", None)
        rid_str = f" [{request_id[:8]}]" if request_id else ""
        source = getattr(record, "source", None)
        source_str = f" <{source}>" if source else ""

        base = (
            f"{timestamp} | {colour}{record.levelname:<8}{self.RESET} | "
            f"{record.name}{rid_str}{source_str} | {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def _rotating_handler(filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=filename,
        maxBytes=settings.LOG_FILE_MAX_BYTES,
        backupCount=settings.LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIDFilter())
    return handler


def setup_logging() -> None:
    """
    Configure the root logger with console + rotating file handlers.

    Idempotent: does nothing if the root logger already has handlers.
    ``DEBUG=true`` switches everything to DEBUG and turns on SQL echo logging;
    otherwise ``LOG_LEVEL`` decides.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    level = (
        logging.DEBUG
        if settings.DEBUG
        else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    )
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.addFilter(RequestIDFilter())
    root_logger.addHandler(console_handler)

    os.makedirs(LOG_DIR, exist_ok=True)
    root_logger.addHandler(_rotating_handler(LOG_FILE, level))
    root_logger.addHandler(_rotating_handler(ERROR_LOG_FILE, logging.ERROR))

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if settings.DEBUG else logging.WARNING
    )
    logging.getLogger("faker").setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized: level=%s, file=%s, backups=%d",
        logging.getLevelName(level),
        LOG_FILE,
        settings.LOG_FILE_BACKUP_COUNT,
    )
