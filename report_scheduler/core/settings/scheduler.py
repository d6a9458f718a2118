"""Scheduler and local report task settings.

Environment variables use SCHEDULER_ prefix. The report task list is normally
kept in conf/scheduler.yaml:

    report_tasks:
      - name: Daily Sales
        report_path: /Finance/Daily Sales
        format: PDF
        cron_expression: "0 0 6 * * ?"
        delivery:
          method: email
          email:
            to: [finance@example.com]
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from report_scheduler.features.reports.models import ReportTask

from .yaml_sources import create_scheduler_yaml_source


class SchedulerSettings(BaseSettings):
    """APScheduler job defaults and the locally configured task list."""

    report_tasks: list[ReportTask] = Field(
        default_factory=list,
        description="Locally configured report tasks (fallback when no remote source answers)",
    )
    timezone: str = Field(default="UTC", description="Timezone cron expressions run in")
    max_instances: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Concurrent runs allowed per task",
    )
    coalesce: bool = Field(
        default=True,
        description="Combine multiple pending executions of one job into one",
    )
    misfire_grace_time: int = Field(
        default=60,
        ge=1,
        description="Seconds a late job may still start",
    )

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_scheduler_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
