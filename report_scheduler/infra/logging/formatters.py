"""Log formatters: JSON Lines for machines, context-aware text for humans."""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
from typing import Any

# Built-in LogRecord attributes that are not "extra" fields.
_RESERVED_ATTRS = frozenset(
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
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        "asctime",
    }
)


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the non-standard attributes attached to a record."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """Structured JSON Lines (JSONL) formatter with UTC timestamps.

    Example output:
        ```json
        {"level": "INFO", "logger": "report_scheduler.features.reports.orchestrator", "message": "Report task completed", "timestamp": "2025-01-01T06:00:01.123Z", "service": "report-scheduler", "task_name": "Daily", "run_id": "9c1e..."}
        ```
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Mapping of output keys to LogRecord attributes.
            static: Static fields to include in every log record.
        """
        super().__init__()
        self.fmt_keys = fmt_keys or {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        self.static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        data: dict[str, Any] = {k: getattr(record, v, None) for k, v in self.fmt_keys.items()}

        data["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        elif record.exc_text:
            data["exception"] = record.exc_text.replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        if self.static:
            data.update(self.static)

        for key, value in extra_fields(record).items():
            if key not in data:
                data[key] = value

        return json.dumps(data, ensure_ascii=False, default=str)


class ContextTextFormatter(logging.Formatter):
    """Human-readable formatter that appends structured fields as ``key=value``."""

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt: str = "%Y-%m-%d %H:%M:%S",
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = extra_fields(record)
        if not fields:
            return text
        suffix = " ".join(f"{key}={value}" for key, value in fields.items())
        first, sep, rest = text.partition("\n")
        return f"{first} [{suffix}]{sep}{rest}"


__all__ = ["ContextTextFormatter", "JSONFormatter", "extra_fields"]
