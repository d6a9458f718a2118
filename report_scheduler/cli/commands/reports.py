"""Report task commands.

This module provides CLI commands for report tasks:
- Execute a task immediately
- List the resolved task set and where it came from
"""

from __future__ import annotations

import json
import sys

import click

from report_scheduler.cli.utils import coro, error, header, info, key_value, success, warning
from report_scheduler.core.exceptions import ReportSchedulerError
from report_scheduler.features.reports.dependencies import build_task_resolver, report_runtime
from report_scheduler.features.reports.orchestrator import RunState


@click.command(name="execute")
@click.argument("task_name")
@coro
async def execute(task_name: str) -> None:
    """Run one report task now and deliver its output.

    TASK_NAME is matched case-insensitively against the resolved tasks.

    \b
    Examples:
      report-scheduler execute Daily
      report-scheduler execute "Sales Report"
    """
    header(f"Executing report task: {task_name}")

    try:
        async with report_runtime() as runtime:
            result = await runtime.orchestrator.run(task_name)
    except ReportSchedulerError as e:
        error(f"Report run failed: {e}")
        sys.exit(1)
    except Exception as e:
        error(f"Unexpected failure: {e}")
        sys.exit(1)

    if result.state is RunState.SKIPPED:
        warning(f"No report task named '{task_name}'")
        sys.exit(1)

    receipt = result.receipt
    key_value("Run ID", result.run_id)
    key_value("Duration", f"{result.duration_ms:.0f} ms")
    if receipt is not None:
        key_value("Delivery", receipt.method.value)
        key_value("Local file", receipt.local_path)
        if receipt.remote_path:
            key_value("Remote path", receipt.remote_path)
    success(f"Report '{result.task_name}' delivered")


@click.group(name="tasks")
def tasks() -> None:
    """Report task definitions."""


@tasks.command(name="list")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@coro
async def list_tasks(output_format: str) -> None:
    """List the resolved report tasks."""
    resolved = await build_task_resolver().resolve_all()

    if output_format == "json":
        payload = {
            "origin": resolved.origin.value,
            "reportTasks": [
                task.model_dump(mode="json", by_alias=True) for task in resolved.tasks
            ],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    header("Report Tasks")
    info(f"Source: {resolved.origin.value}")

    if not resolved.tasks:
        warning("No report tasks configured")
        return

    name_width = max(len(t.name) for t in resolved.tasks) + 2
    cron_width = max(len(t.cron_expression) for t in resolved.tasks) + 2

    click.echo()
    click.echo(f"{'Name':<{name_width}} {'Cron':<{cron_width}} {'Format':<8} {'Delivery':<8}")
    click.echo("-" * (name_width + cron_width + 18))
    for task in resolved.tasks:
        click.echo(
            f"{task.name:<{name_width}} {task.cron_expression:<{cron_width}} "
            f"{task.format:<8} {task.delivery.method.value:<8}"
        )

    click.echo()
    success(f"Total: {len(resolved.tasks)} report tasks")
