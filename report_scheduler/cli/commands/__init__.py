"""CLI command modules."""

from report_scheduler.cli.commands import reports, scheduler

__all__ = ["reports", "scheduler"]
