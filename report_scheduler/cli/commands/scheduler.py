"""Scheduler commands.

This module provides CLI commands for the APScheduler process:
- Run the scheduler until interrupted
- Preview the jobs that would be registered
"""

from __future__ import annotations

import asyncio
import contextlib
from datetime import UTC, datetime
import signal
import sys

import click

from report_scheduler.cli.utils import coro, error, header, info, success, warning
from report_scheduler.core.exceptions import ReportSchedulerError
from report_scheduler.core.settings import get_scheduler_settings
from report_scheduler.features.reports.dependencies import build_task_resolver, report_runtime
from report_scheduler.infra.tasks import (
    build_trigger,
    create_scheduler,
    register_report_jobs,
    start_scheduler,
    stop_scheduler,
)


@click.command(name="run")
@coro
async def run() -> None:
    """Run the report scheduler until interrupted (Ctrl+C or SIGTERM)."""
    settings = get_scheduler_settings()

    try:
        async with report_runtime() as runtime:
            resolved = await runtime.resolver.resolve_all()
            scheduler = create_scheduler(settings)
            registered = register_report_jobs(scheduler, resolved.tasks, runtime.orchestrator.run)
            if not registered:
                warning("No report jobs registered; waiting anyway")

            stop_event = asyncio.Event()
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.add_signal_handler(sig, stop_event.set)

            await start_scheduler(scheduler)
            success(f"Scheduler running with {len(registered)} jobs ({resolved.origin.value} tasks)")
            try:
                await stop_event.wait()
            finally:
                info("Shutting down scheduler")
                await stop_scheduler(scheduler, wait=False)
    except ReportSchedulerError as e:
        error(f"Scheduler failed to start: {e}")
        sys.exit(1)


@click.command(name="jobs")
@coro
async def jobs() -> None:
    """Show the cron triggers that would be registered for each task."""
    settings = get_scheduler_settings()
    resolved = await build_task_resolver(scheduler_settings=settings).resolve_all()

    header("Report Jobs")
    info(f"Source: {resolved.origin.value} (timezone {settings.timezone})")

    if not resolved.tasks:
        warning("No report tasks configured")
        return

    now = datetime.now(UTC)
    name_width = max(len(t.name) for t in resolved.tasks) + 2
    cron_width = max(len(t.cron_expression) for t in resolved.tasks) + 2
    valid = 0

    click.echo()
    click.echo(f"{'Name':<{name_width}} {'Cron':<{cron_width}} {'Next Run':<25}")
    click.echo("-" * (name_width + cron_width + 26))
    for task in resolved.tasks:
        try:
            trigger = build_trigger(task.cron_expression, settings.timezone)
        except ValueError as e:
            next_display = click.style(f"invalid: {e}", fg="red")
        else:
            valid += 1
            next_fire = trigger.get_next_fire_time(None, now)
            next_display = next_fire.isoformat()[:19] if next_fire else "never"
        click.echo(f"{task.name:<{name_width}} {task.cron_expression:<{cron_width}} {next_display}")

    click.echo()
    success(f"Total: {valid} of {len(resolved.tasks)} tasks schedulable")
