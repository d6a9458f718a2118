"""Context management for structured logging.

Provides automatic context injection into log records using contextvars, so
fields such as ``task_name`` and ``run_id`` appear on every record emitted while
a report run is in progress, without passing them to each logging call.

Each asyncio task gets its own copy of the context, so concurrent runs of
different (or the same) tasks stay distinguishable in the logs.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
import logging
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current async task/thread."""
    _log_context.set({})


@contextmanager
def bound_log_context(**kwargs: Any) -> Iterator[None]:
    """Add fields to the logging context for the duration of a block.

    The previous context is restored on exit, even when the block raises.

    Example:
        ```python
        with bound_log_context(task_name="Daily", run_id=run_id):
            await orchestrator_step()
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    token = _log_context.set(current)
    try:
        yield
    finally:
        _log_context.reset(token)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the contextvars log context onto each LogRecord.

    Attach it to handlers (not loggers) so records propagated from child
    loggers are enriched too. Explicit ``extra`` values win over context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


__all__ = [
    "ContextInjectingFilter",
    "bound_log_context",
    "clear_log_context",
    "get_log_context",
]
