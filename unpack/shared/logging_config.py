"""
Structured JSON logging configuration for the journal service.

JSON-formatted logs in production, human-readable logs in development, both
carrying the request correlation ID.

Usage:
    from unpack.shared.logging_config import setup_logging

    # At application startup (main.py):
    setup_logging(service_name="unpack-journal-service")

    # In modules:
    logger = logging.getLogger("Unpack.Capture")
    logger.info("Extraction complete", extra={"page_count": 3, "route": "overview"})

Output format (JSON, one line per log):
    {
        "timestamp": "2026-01-28T10:30:00.123456Z",
        "level": "INFO",
        "logger": "Unpack.Capture",
        "message": "Extraction complete",
        "service": "unpack-journal-service",
        "correlation_id": "abc123",
        "page_count": 3,
        "route": "overview"
    }
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from unpack.shared.correlation import get_correlation_id

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class CorrelationIdFilter(logging.Filter):
    """Injects the current correlation_id into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def __init__(self, service_name: str = "unpack"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                log_entry[key] = value
            except (TypeError, ValueError):
                log_entry[key] = str(value)

        return json.dumps(log_entry)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", "-")
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        prefix = f"{timestamp} [{record.levelname}] [{correlation_id}]"

        extra_parts = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        extras = " | " + ", ".join(extra_parts) if extra_parts else ""

        formatted = f"{prefix} {record.name}: {record.getMessage()}{extras}"
        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)
        return formatted


def setup_logging(
    service_name: str,
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        service_name: Name of the service (e.g., "unpack-journal-service")
        level: Log level. Defaults to LOG_LEVEL env var or INFO.
        json_output: JSON logs if True, human-readable if False. Defaults to
                     JSON unless ENVIRONMENT is "development".
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

    log_level = getattr(logging, level, logging.INFO)

    if json_output is None:
        environment = os.getenv("ENVIRONMENT", "production").lower()
        json_output = environment != "development"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter(service_name=service_name) if json_output else HumanReadableFormatter())
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    for logger_name in ("httpx", "httpcore", "openai", "asyncio", "hpack"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(f"{service_name}.startup").info(
        "Logging configured",
        extra={
            "log_level": level,
            "json_output": json_output,
            "environment": os.getenv("ENVIRONMENT", "production"),
        },
    )
