"""Scheduling infrastructure for report runs.

This package provides:
- cron.py: Quartz/crontab expression parsing into APScheduler triggers
- scheduler.py: APScheduler setup and per-task job registration
"""

from __future__ import annotations

from report_scheduler.infra.tasks.cron import build_trigger
from report_scheduler.infra.tasks.scheduler import (
    create_scheduler,
    get_job_status,
    register_report_jobs,
    run_report_job,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "build_trigger",
    "create_scheduler",
    "get_job_status",
    "register_report_jobs",
    "run_report_job",
    "start_scheduler",
    "stop_scheduler",
]
