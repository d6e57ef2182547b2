"""Structured logging for tether.

Provides:
- JSON-formatted logs for log aggregation systems (ELK, Loki, etc.)
- A readable console format for development
- Blob context (folder, owner reference) propagated through context vars

Usage:
    from tether.observability.logging import configure_logging

    configure_logging(json_format=True, level="INFO")

    logger = logging.getLogger(__name__)
    with LogContext(folder="Invoice.attachment", owner="Invoice/42"):
        logger.info("Saving blob")  # Includes folder and owner
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

folder_var: contextvars.ContextVar[str] = contextvars.ContextVar("folder", default="")
owner_var: contextvars.ContextVar[str] = contextvars.ContextVar("owner", default="")
operation_var: contextvars.ContextVar[str] = contextvars.ContextVar("operation", default="")

_CONTEXT_VARS: dict[str, contextvars.ContextVar[str]] = {
    "folder": folder_var,
    "owner": owner_var,
    "operation": operation_var,
}

# Standard LogRecord attributes, never copied as extra fields
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


def _context() -> dict[str, str]:
    return {key: var.get() for key, var in _CONTEXT_VARS.items() if var.get()}


class JsonFormatter(logging.Formatter):
    """JSON log formatter with blob context support.

    Output format:
    {
        "timestamp": "2026-01-10T12:34:56.789Z",
        "level": "INFO",
        "logger": "tether.storage.local",
        "message": "Stored blob",
        "module": "local",
        "function": "save",
        "line": 42,
        "folder": "Invoice.attachment",
        "owner": "Invoice/42"
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_data.update(_context())

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)  # Verify it's JSON serializable
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for development.

    Output format:
    2026-01-10 12:34:56 | INFO | tether.blob | Stored blob | folder=Invoice.attachment
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname

        if self.use_colors:
            color = self.COLORS.get(level, "")
            level = f"{color}{level}{self.RESET}"

        message = record.getMessage()
        context_parts = [f"{key}={value}" for key, value in _context().items()]
        context = f" | {' '.join(context_parts)}" if context_parts else ""

        result = f"{timestamp} | {level:8} | {record.name} | {message}{context}"

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def configure_logging(
    json_format: bool = True,
    level: str = "INFO",
    use_colors: bool = True,
) -> None:
    """Configure application-wide logging.

    Args:
        json_format: Use JSON format (recommended for production)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_colors: Use ANSI colors in console format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)

    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ConsoleFormatter(use_colors=use_colors))

    root_logger.addHandler(handler)

    # Reduce noise from cloud SDKs
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("aiobotocore").setLevel(logging.WARNING)
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


class LogContext:
    """Context manager for adding temporary blob context to logs.

    Usage:
        with LogContext(operation="save", folder="Invoice.attachment"):
            logger.info("Saving")  # Includes operation and folder
    """

    def __init__(self, **kwargs: str) -> None:
        unknown = set(kwargs) - set(_CONTEXT_VARS)
        if unknown:
            raise TypeError(f"Unknown log context keys: {', '.join(sorted(unknown))}")
        self.extra = kwargs
        self._tokens: dict[str, contextvars.Token[str]] = {}

    def __enter__(self) -> LogContext:
        for key, value in self.extra.items():
            self._tokens[key] = _CONTEXT_VARS[key].set(value)
        return self

    def __exit__(self, *args: Any) -> None:
        for key, token in self._tokens.items():
            _CONTEXT_VARS[key].reset(token)
        self._tokens.clear()
