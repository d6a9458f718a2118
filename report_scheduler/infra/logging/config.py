"""Logging configuration setup.

Provides logging configuration using:
- dictConfig for the root logger level and formatters
- QueueHandler + QueueListener for non-blocking I/O
- ContextInjectingFilter for automatic task_name/run_id propagation
- All handlers on the root logger (child loggers propagate)
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
import time
from typing import TYPE_CHECKING, Any

from report_scheduler.infra.logging.context import ContextInjectingFilter
from report_scheduler.infra.logging.formatters import ContextTextFormatter, JSONFormatter

if TYPE_CHECKING:
    from report_scheduler.core.settings.logs import LoggingSettings

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_LOGGING_INITIALIZED = False
_ATEXIT_REGISTERED = False

logger = logging.getLogger(__name__)


def complete() -> None:
    """Wait (up to five seconds) for queued log records to be written."""
    if _log_queue is None or _listener is None:
        return

    deadline = time.monotonic() + 5.0
    while not _log_queue.empty() and time.monotonic() < deadline:
        time.sleep(0.01)


def shutdown() -> None:
    """Stop the QueueListener after flushing pending records."""
    global _log_queue, _listener, _LOGGING_INITIALIZED

    if _listener is not None:
        complete()
        _listener.stop()
        _listener = None

    _log_queue = None
    _LOGGING_INITIALIZED = False


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from report_scheduler.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = {**settings_obj.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    file_path: str | Path | None = None,
    json_logs: bool = False,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "report-scheduler",
    quiet_loggers: tuple[str, ...] = (),
    **kwargs: Any,
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL (JSON Lines) structured logging.
        console_enabled: Enable console/stderr logging.
        include_context: Inject the contextvars log context into every record.
        capture_warnings: Forward Python warnings to logging system.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        service_name: Static ``service`` field in JSON output.
        quiet_loggers: Logger names capped at WARNING.
        **kwargs: Ignored extra settings.

    Example:
        from report_scheduler.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    global _log_queue, _listener, _ATEXIT_REGISTERED

    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs.keys())))

    if _listener is not None:
        shutdown()

    logging.captureWarnings(capture_warnings)

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "root": {"level": log_level.upper(), "handlers": []},
            "loggers": {name: {"level": "WARNING"} for name in quiet_loggers},
        }
    )

    formatter: logging.Formatter
    if json_logs:
        formatter = JSONFormatter(static={"service": service_name})
    else:
        formatter = ContextTextFormatter()

    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if path:
        file_handler = RotatingFileHandler(
            path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    _log_queue = Queue()
    _listener = QueueListener(_log_queue, *handlers)
    _listener.start()
    if not _ATEXIT_REGISTERED:
        atexit.register(shutdown)
        _ATEXIT_REGISTERED = True

    queue_handler = QueueHandler(_log_queue)
    if include_context:
        # Runs in the emitting task, before the record crosses the queue.
        queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(queue_handler)


__all__ = ["complete", "configure_logging", "setup_logging", "shutdown"]
