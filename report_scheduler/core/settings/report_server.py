"""Report server (SOAP execution endpoint) settings.

Environment variables use REPORT_SERVER_ prefix.
Example: REPORT_SERVER_BASE_URL=https://reports.example.com/ReportServer
"""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_report_server_yaml_source

MIN_TIMEOUT_SECONDS = 5


class ReportServerSettings(BaseSettings):
    """Connection settings for the report execution web service."""

    base_url: str = Field(
        default="",
        description="Report server root URL (e.g. https://host/ReportServer)",
    )
    folder_path: str = Field(
        default="",
        description="Catalog folder used for tasks without an explicit report path",
    )
    execution_endpoint: str = Field(
        default="/ReportExecution2005.asmx",
        description="Execution endpoint path relative to base_url",
    )
    username: str | None = Field(default=None, description="Account name")
    password: SecretStr | None = Field(default=None, description="Account password")
    domain: str | None = Field(default=None, description="Windows domain of the account")
    timeout_seconds: float = Field(
        default=120.0,
        description="HTTP timeout per request in seconds (minimum 5)",
    )
    parameter_language: str = Field(
        default="",
        description="Culture sent with parameter values; empty is the invariant culture",
    )

    @field_validator("timeout_seconds", mode="after")
    @classmethod
    def _floor_timeout(cls, value: float) -> float:
        return max(value, MIN_TIMEOUT_SECONDS)

    @field_validator("base_url", mode="after")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        return value.strip()

    model_config = SettingsConfigDict(
        env_prefix="REPORT_SERVER_",
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
            create_report_server_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @property
    def is_configured(self) -> bool:
        """Check if a report server URL is set."""
        return bool(self.base_url)

    @property
    def account_name(self) -> str | None:
        """Username qualified with the domain when one is configured."""
        if not self.username:
            return None
        if self.domain:
            return f"{self.domain}\\{self.username}"
        return self.username

    @property
    def service_url(self) -> str:
        """Base URL with a trailing slash, ready for relative endpoint joins."""
        return self.base_url.rstrip("/") + "/"
