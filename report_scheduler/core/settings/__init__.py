"""Modular Pydantic Settings v2 configuration.

One frozen settings class per concern (report server, output, SFTP, email,
task source, scheduler, logging), each with its own environment prefix and an
optional conf/<name>.yaml + conf/<name>.d/ source.

Import settings via cached loaders:
    from report_scheduler.core.settings import get_report_server_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files
    3. Environment variables
    4. .env file
    5. secrets_dir
"""

from __future__ import annotations

from .email import EmailSettings
from .loader import (
    clear_all_caches,
    get_email_settings,
    get_logging_settings,
    get_output_settings,
    get_report_server_settings,
    get_scheduler_settings,
    get_sftp_settings,
    get_task_source_settings,
)
from .logs import LoggingSettings
from .output import OutputSettings
from .report_server import ReportServerSettings
from .scheduler import SchedulerSettings
from .sftp import SftpSettings
from .task_source import TaskSourceSettings

__all__ = [
    "EmailSettings",
    "LoggingSettings",
    "OutputSettings",
    "ReportServerSettings",
    "SchedulerSettings",
    "SftpSettings",
    "TaskSourceSettings",
    "clear_all_caches",
    "get_email_settings",
    "get_logging_settings",
    "get_output_settings",
    "get_report_server_settings",
    "get_scheduler_settings",
    "get_sftp_settings",
    "get_task_source_settings",
]
