"""Email delivery settings for SMTP.

Environment variables use EMAIL_ prefix.
Example: EMAIL_SMTP_HOST=smtp.example.com, EMAIL_FROM_ADDRESS=reports@example.com
"""

from __future__ import annotations

from pydantic import EmailStr, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_email_yaml_source


class EmailSettings(BaseSettings):
    """SMTP configuration for the ``email`` delivery method.

    Environment variables use EMAIL_ prefix.
    Example: EMAIL_SMTP_HOST=smtp.gmail.com, EMAIL_SMTP_PORT=587
    """

    smtp_host: str = Field(default="", max_length=255, description="SMTP server hostname")
    smtp_port: int = Field(
        default=25,
        ge=1,
        le=65535,
        description="SMTP server port (587 for TLS, 465 for SSL, 25 for plain)",
    )
    smtp_username: str | None = Field(
        default=None,
        max_length=255,
        description="SMTP authentication username",
    )
    smtp_password: SecretStr | None = Field(
        default=None,
        description="SMTP authentication password",
    )

    # TLS/SSL Configuration
    use_tls: bool = Field(
        default=True,
        description="Use STARTTLS. Set False for implicit SSL (port 465) or plain",
    )
    use_ssl: bool = Field(
        default=False,
        description="Use implicit SSL/TLS (port 465). Mutually exclusive with use_tls",
    )
    validate_certs: bool = Field(
        default=True,
        description="Validate SSL/TLS certificates",
    )

    # Sender Configuration
    from_address: EmailStr | None = Field(default=None, description="Sender email address")
    from_name: str | None = Field(
        default=None,
        max_length=100,
        description="Sender display name",
    )

    timeout: float = Field(
        default=60.0,
        ge=1.0,
        le=600.0,
        description="SMTP connection timeout in seconds",
    )

    @field_validator("from_address", "smtp_username", "from_name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def validate_tls_ssl_exclusive(self) -> EmailSettings:
        """Ensure TLS and SSL are mutually exclusive."""
        if self.use_tls and self.use_ssl:
            msg = "use_tls and use_ssl are mutually exclusive"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
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
            create_email_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @property
    def is_configured(self) -> bool:
        """Check if email is configured for sending."""
        return bool(self.smtp_host.strip()) and self.from_address is not None

    @property
    def requires_auth(self) -> bool:
        """Check if SMTP authentication is configured."""
        return bool(self.smtp_username)

    def get_smtp_url(self) -> str:
        """Get SMTP URL for debugging (without password)."""
        scheme = "smtps" if self.use_ssl else "smtp"
        auth = f"{self.smtp_username}@" if self.smtp_username else ""
        return f"{scheme}://{auth}{self.smtp_host}:{self.smtp_port}"
