"""Logging infrastructure.

Structured logging with:
- JSONL or context-aware text output
- Automatic context injection (task_name, run_id)
- QueueHandler + QueueListener for non-blocking I/O

Basic usage:
    import logging

    from report_scheduler.infra.logging import bound_log_context

    logger = logging.getLogger(__name__)

    with bound_log_context(task_name="Daily", run_id="3f2a..."):
        logger.info("Rendering report")  # Includes task_name and run_id
"""

from __future__ import annotations

from .config import complete, configure_logging, setup_logging, shutdown
from .context import (
    ContextInjectingFilter,
    bound_log_context,
    clear_log_context,
    get_log_context,
)
from .formatters import ContextTextFormatter, JSONFormatter

__all__ = [
    "ContextInjectingFilter",
    "ContextTextFormatter",
    "JSONFormatter",
    "bound_log_context",
    "clear_log_context",
    "complete",
    "configure_logging",
    "get_log_context",
    "setup_logging",
    "shutdown",
]
