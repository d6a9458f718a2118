"""CLI utilities for running async operations and formatting output."""

from report_scheduler.cli.utils.async_runner import coro
from report_scheduler.cli.utils.formatters import (
    error,
    header,
    info,
    key_value,
    success,
    warning,
)

__all__ = [
    "coro",
    "error",
    "header",
    "info",
    "key_value",
    "success",
    "warning",
]
