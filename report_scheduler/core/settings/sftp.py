"""SFTP delivery settings.

Environment variables use SFTP_ prefix.
Example: SFTP_HOST=files.example.com, SFTP_REMOTE_DIRECTORY=/incoming
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_sftp_yaml_source


class SftpSettings(BaseSettings):
    """SFTP server used for the ``sftp`` delivery method."""

    host: str = Field(default="", description="SFTP server hostname")
    port: int = Field(default=22, ge=1, le=65535, description="SFTP server port")
    username: str = Field(default="", description="Login name")
    password: SecretStr | None = Field(default=None, description="Login password")
    remote_directory: str = Field(
        default="/",
        description="Default remote directory when a task sets none",
    )
    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=600.0,
        description="Connection timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="SFTP_",
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
            create_sftp_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @property
    def is_configured(self) -> bool:
        """Check if an SFTP host is set."""
        return bool(self.host.strip())
