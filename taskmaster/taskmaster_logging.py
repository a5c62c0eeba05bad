"""Logging utilities for the Task Master MCP server.

Console output goes to stderr because stdout carries the stdio transport.
An optional file handler writes one JSON object per record.
"""

from __future__ import annotations

import json
import time
import logging as std_logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union


def setup_logging(log_level: Union[str, int] = std_logging.INFO, log_file: Optional[Path] = None) -> None:
    """Configure the ``taskmaster`` logger hierarchy."""

    if isinstance(log_level, str):
        log_level = log_level.upper()

    logger = std_logging.getLogger("taskmaster")
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_formatter = std_logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = std_logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = std_logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.debug("Task Master logging initialized")


class JsonFormatter(std_logging.Formatter):
    """One JSON object per record, with ``extra_fields`` merged at the top level."""

    RECORD_KEYS = {
        "levelname": "level",
        "name": "logger",
        "module": "module",
        "funcName": "function",
        "lineno": "line",
    }

    def format(self, record: std_logging.LogRecord) -> str:
        entry: Dict[str, Any] = {"timestamp": datetime.fromtimestamp(record.created).isoformat()}
        entry.update({key: getattr(record, attr) for attr, key in self.RECORD_KEYS.items()})
        entry["message"] = record.getMessage()
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(entry, default=str)


@contextmanager
def log_operation(operation_name: str, **extra_fields):
    """Log start, completion and failure of an operation with its duration."""
    logger = std_logging.getLogger("taskmaster.operations")
    start_time = time.time()

    logger.info(f"Starting operation: {operation_name}", extra={"extra_fields": {
        "operation": operation_name,
        "status": "started",
        **extra_fields
    }})

    try:
        yield
    except Exception as e:
        duration = time.time() - start_time
        logger.error(f"Failed operation: {operation_name} after {duration:.3f}s - {e}", extra={"extra_fields": {
            "operation": operation_name,
            "status": "failed",
            "duration": duration,
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        }}, exc_info=True)
        raise

    duration = time.time() - start_time
    logger.info(f"Completed operation: {operation_name} in {duration:.3f}s", extra={"extra_fields": {
        "operation": operation_name,
        "status": "completed",
        "duration": duration,
        **extra_fields
    }})


def log_tool_event(event_type: str, **data: Any) -> Dict[str, Any]:
    """Log a structured tool event and return the logged payload."""
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        **data
    }
    std_logging.getLogger("taskmaster.events").info(
        f"Tool event: {event_type}", extra={"extra_fields": event_data}
    )
    return event_data


def log_error_with_context(
    error: Exception,
    context: Dict[str, Any],
    log: Optional[Any] = None,
    **extra_fields: Any,
) -> None:
    """Log ``error`` with its traceback and structured ``context``.

    Goes to ``log`` when given, otherwise to ``taskmaster.errors``.
    """
    log = log or std_logging.getLogger("taskmaster.errors")
    operation = context.get("operation", "unknown operation")
    log.error(
        f"Error in {operation}: {error}",
        extra={"extra_fields": {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
            **extra_fields,
        }},
        exc_info=(type(error), error, error.__traceback__),
    )
