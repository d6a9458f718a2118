"""Logging settings.

Environment variables use LOG_ prefix.
Example: LOG_LEVEL=DEBUG, LOG_JSON=true, LOG_FILE_PATH=/var/log/report-scheduler.jsonl
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_logging_yaml_source

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """How scheduler and run logs are written.

    Console output is on by default; a rotating file is added only when
    ``file_path`` is set.
    """

    service_name: str = Field(
        default="report-scheduler",
        description="Static service field on JSON records",
    )
    level: LogLevel = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(
        default=False,
        alias="json",
        description="Write JSON Lines instead of text",
    )
    console_enabled: bool = Field(default=True, description="Log to stderr")
    file_path: Path | None = Field(
        default=None,
        description="Rotating log file; unset disables file logging",
    )
    file_max_bytes: int = Field(
        default=10_485_760,
        ge=1024,
        description="Log file size that triggers rotation",
    )
    file_backup_count: int = Field(default=5, ge=0, le=100, description="Rotated files kept")
    include_context: bool = Field(
        default=True,
        description="Stamp task_name and run_id from the active run onto records",
    )
    capture_warnings: bool = Field(default=True, description="Route warnings into logging")
    quiet_loggers: tuple[str, ...] = Field(
        default=("paramiko", "httpx", "httpcore", "apscheduler.executors", "aiosmtplib"),
        description="Transport and scheduler loggers held at WARNING",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_logging_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for configure_logging()."""
        return {
            "service_name": self.service_name,
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "file_path": self.file_path,
            "file_max_bytes": self.file_max_bytes,
            "file_backup_count": self.file_backup_count,
            "include_context": self.include_context,
            "capture_warnings": self.capture_warnings,
            "quiet_loggers": self.quiet_loggers,
        }
