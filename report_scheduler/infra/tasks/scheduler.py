"""APScheduler integration for scheduled report runs.

Each report task becomes one cron job whose only argument is the task name; the
job hands that name to the run callable (normally ExecutionOrchestrator.run).

Architecture:
    APScheduler (in-process, asyncio) → run(task_name) → resolve → execute → deliver
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import (
    AsyncIOScheduler,  # type: ignore[import-untyped]
)

from report_scheduler.infra.tasks.cron import build_trigger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from report_scheduler.core.settings.scheduler import SchedulerSettings
    from report_scheduler.features.reports.models import ReportTask

    RunCallable = Callable[[str], Awaitable[Any]]

logger = logging.getLogger(__name__)


def create_scheduler(settings: SchedulerSettings) -> AsyncIOScheduler:
    """Create an AsyncIOScheduler with job defaults from settings.

    ``max_instances`` above one lets overlapping runs of the same task proceed
    concurrently instead of being dropped.
    """
    return AsyncIOScheduler(
        timezone=settings.timezone,
        job_defaults={
            "coalesce": settings.coalesce,
            "max_instances": settings.max_instances,
            "misfire_grace_time": settings.misfire_grace_time,
        },
    )


async def run_report_job(run: RunCallable, task_name: str) -> None:
    """Job body: run one report.

    Failures propagate so APScheduler records the job as failed and emits
    ``EVENT_JOB_ERROR`` for listeners.
    """
    await run(task_name)


def register_report_jobs(
    scheduler: AsyncIOScheduler,
    tasks: Iterable[ReportTask],
    run: RunCallable,
    *,
    timezone: str | None = None,
) -> list[str]:
    """Register one cron job per task.

    Tasks with an invalid cron expression are skipped with an error log.

    Returns:
        The ids of the registered jobs (the task names).
    """
    logger.info("Setting up report jobs with APScheduler")

    registered: list[str] = []
    for task in tasks:
        if not task.name.strip():
            logger.warning("Skipping report task without a name")
            continue
        try:
            trigger = build_trigger(task.cron_expression, timezone or str(scheduler.timezone))
        except ValueError as exc:
            logger.error(
                "Skipping report task with invalid cron expression",
                extra={
                    "task_name": task.name,
                    "cron_expression": task.cron_expression,
                    "error": str(exc),
                },
            )
            continue

        scheduler.add_job(
            func=run_report_job,
            trigger=trigger,
            args=[run, task.name],
            id=task.name,
            name=f"Report: {task.name}",
            replace_existing=True,
        )
        registered.append(task.name)
        logger.info(
            "Report job scheduled",
            extra={"task_name": task.name, "cron_expression": task.cron_expression},
        )

    logger.info(f"Scheduled {len(registered)} report jobs")
    return registered


async def start_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Start the scheduler on the running event loop."""
    if not scheduler.running:
        logger.info("Starting APScheduler")
        scheduler.start()
        logger.info(f"APScheduler started with {len(scheduler.get_jobs())} jobs")
    else:
        logger.warning("APScheduler is already running")


async def stop_scheduler(scheduler: AsyncIOScheduler, *, wait: bool = True) -> None:
    """Stop the scheduler."""
    if scheduler.running:
        logger.info("Stopping APScheduler")
        scheduler.shutdown(wait=wait)
        logger.info("APScheduler stopped")
    else:
        logger.debug("APScheduler is not running")


def get_job_status(scheduler: AsyncIOScheduler) -> list[dict]:
    """Get status of all scheduled jobs.

    Returns:
        List of job information dictionaries.
    """
    jobs = []
    for job in scheduler.get_jobs():
        next_run_time = getattr(job, "next_run_time", None)
        jobs.append(
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run_time.isoformat() if next_run_time else None,
                "trigger": str(job.trigger),
            }
        )
    return jobs


__all__ = [
    "create_scheduler",
    "get_job_status",
    "register_report_jobs",
    "run_report_job",
    "start_scheduler",
    "stop_scheduler",
]
