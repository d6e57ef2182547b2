"""Observability module for tether.

Provides structured logging:
- JSON and console formatters
- Blob context (folder, owner, operation) carried through context vars
"""

from tether.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    folder_var,
    operation_var,
    owner_var,
)

__all__ = [
    "configure_logging",
    "ConsoleFormatter",
    "JsonFormatter",
    "LogContext",
    "folder_var",
    "owner_var",
    "operation_var",
]
