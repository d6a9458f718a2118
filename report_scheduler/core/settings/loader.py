"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from report_scheduler.core.settings import get_report_server_settings

    settings = get_report_server_settings()  # First call: loads and validates
    settings = get_report_server_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the cache to force reload:
    get_report_server_settings.cache_clear()

    Or construct settings directly:
    settings = ReportServerSettings(base_url="http://localhost/ReportServer")
"""

from __future__ import annotations

from functools import lru_cache

from .email import EmailSettings
from .logs import LoggingSettings
from .output import OutputSettings
from .report_server import ReportServerSettings
from .scheduler import SchedulerSettings
from .sftp import SftpSettings
from .task_source import TaskSourceSettings


@lru_cache(maxsize=1)
def get_report_server_settings() -> ReportServerSettings:
    """Get cached report server settings."""
    return ReportServerSettings()


@lru_cache(maxsize=1)
def get_output_settings() -> OutputSettings:
    """Get cached local output settings."""
    return OutputSettings()


@lru_cache(maxsize=1)
def get_sftp_settings() -> SftpSettings:
    """Get cached SFTP settings."""
    return SftpSettings()


@lru_cache(maxsize=1)
def get_email_settings() -> EmailSettings:
    """Get cached email settings."""
    return EmailSettings()


@lru_cache(maxsize=1)
def get_task_source_settings() -> TaskSourceSettings:
    """Get cached remote task source settings."""
    return TaskSourceSettings()


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """Get cached scheduler settings (including the local task list)."""
    return SchedulerSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear every cached settings instance (used by tests)."""
    get_report_server_settings.cache_clear()
    get_output_settings.cache_clear()
    get_sftp_settings.cache_clear()
    get_email_settings.cache_clear()
    get_task_source_settings.cache_clear()
    get_scheduler_settings.cache_clear()
    get_logging_settings.cache_clear()
