"""Local output settings.

Environment variables use OUTPUT_ prefix.
Example: OUTPUT_DIRECTORY=/var/lib/report-scheduler/reports
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_output_yaml_source


class OutputSettings(BaseSettings):
    """Where rendered reports are written before any remote delivery."""

    directory: Path = Field(
        default=Path("reports"),
        description="Local output directory (created on demand)",
    )

    model_config = SettingsConfigDict(
        env_prefix="OUTPUT_",
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
            create_output_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
