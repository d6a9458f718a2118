"""Main CLI entry point for report-scheduler commands."""

import click

from report_scheduler.cli.commands import reports, scheduler
from report_scheduler.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="report-scheduler")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Report Scheduler CLI - run report server reports on a schedule.

    Reports are rendered through the report server's SOAP execution
    service, saved locally, and delivered over SFTP or email.

    \b
    Commands:
      run        Run the scheduler until interrupted
      execute    Run one report task now
      tasks      Inspect report task definitions
      jobs       Preview cron triggers per task

    \b
    Quick Start:
      report-scheduler tasks list       # Show configured tasks
      report-scheduler jobs             # Check cron expressions
      report-scheduler execute Daily    # Run one task now
      report-scheduler run              # Start scheduling
    """
    ctx.ensure_object(dict)


cli.add_command(scheduler.run)
cli.add_command(scheduler.jobs)
cli.add_command(reports.execute)
cli.add_command(reports.tasks)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
