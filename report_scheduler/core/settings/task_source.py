"""Remote task-definition API settings.

Environment variables use TASK_SOURCE_ prefix.
Example: TASK_SOURCE_BASE_URL=https://options.example.com, TASK_SOURCE_API_KEY=...
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_task_source_yaml_source


class TaskSourceSettings(BaseSettings):
    """Where to fetch report task definitions at startup.

    An empty base URL disables the remote source; local configuration is used.
    """

    base_url: str = Field(default="", description="Task-definition API root URL")
    report_tasks_path: str = Field(
        default="/api/system/options/report-tasks",
        description="Path of the report task list endpoint",
    )
    api_key: SecretStr | None = Field(default=None, description="API key sent with requests")
    api_key_header_name: str = Field(
        default="X-Api-Key",
        description="Header carrying the API key",
    )
    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="TASK_SOURCE_",
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
            create_task_source_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @property
    def is_configured(self) -> bool:
        """Check if a remote task source URL is set."""
        return bool(self.base_url.strip())
