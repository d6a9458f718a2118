"""Report task and artifact models.

Task definitions arrive from two places: the local YAML/env configuration
(snake_case keys) and the remote task-definition API (camelCase keys). Both are
accepted by the same models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from report_scheduler.features.reports.formats import RenderFormat

DEFAULT_FORMAT = "PDF"
DEFAULT_CRON_EXPRESSION = "0 0 6 * * ?"


class DeliveryMethod(StrEnum):
    """Channel used to ship a rendered report."""

    SFTP = "sftp"
    EMAIL = "email"


# Numeric values as serialized by the task-definition API (0 means "unknown").
_NUMERIC_METHODS: dict[int, DeliveryMethod] = {
    0: DeliveryMethod.SFTP,
    1: DeliveryMethod.SFTP,
    2: DeliveryMethod.EMAIL,
}


class _TaskModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class EmailDelivery(_TaskModel):
    """Email delivery options for a task."""

    to: list[str] = Field(default_factory=list, description="Primary recipients")
    cc: list[str] = Field(default_factory=list, description="CC recipients")
    bcc: list[str] = Field(default_factory=list, description="BCC recipients")
    subject: str = Field(default="", description="Subject line; defaults to '<task> report'")
    body: str = Field(default="", description="Message body; defaults to a fixed text")
    is_body_html: bool = Field(default=False, description="Send the body as HTML")
    attachment_file_name: str | None = Field(
        default=None,
        description="Attachment file name override",
    )

    @field_validator("to", "cc", "bcc", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("subject", "body", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def has_recipients(self) -> bool:
        """Whether at least one non-blank address exists across To/Cc/Bcc."""
        return any(address.strip() for address in (*self.to, *self.cc, *self.bcc))


class SftpDelivery(_TaskModel):
    """SFTP delivery options for a task."""

    remote_directory: str | None = Field(
        default=None,
        description="Remote directory override; the SFTP settings default applies when unset",
    )
    file_name: str | None = Field(default=None, description="Remote file name override")


class DeliveryConfig(_TaskModel):
    """Delivery configuration: the method plus per-method options."""

    method: DeliveryMethod = DeliveryMethod.SFTP
    email: EmailDelivery = Field(default_factory=EmailDelivery)
    sftp: SftpDelivery = Field(default_factory=SftpDelivery)

    @field_validator("method", mode="before")
    @classmethod
    def _coerce_method(cls, value: Any) -> DeliveryMethod:
        """Accept names in any case, numeric enum values, and unknown/unset values."""
        if isinstance(value, DeliveryMethod):
            return value
        if isinstance(value, bool):
            return DeliveryMethod.SFTP
        if isinstance(value, int):
            return _NUMERIC_METHODS.get(value, DeliveryMethod.SFTP)
        if isinstance(value, str):
            text = value.strip().lower()
            if text.isdigit():
                return _NUMERIC_METHODS.get(int(text), DeliveryMethod.SFTP)
            try:
                return DeliveryMethod(text)
            except ValueError:
                return DeliveryMethod.SFTP
        return DeliveryMethod.SFTP

    @field_validator("email", "sftp", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any) -> Any:
        return {} if value is None else value


class ReportTask(_TaskModel):
    """A scheduled report definition."""

    name: str = Field(min_length=1, description="Unique (case-insensitive) task name")
    report_path: str | None = Field(
        default=None,
        description="Report server catalog path; defaults to '<folder>/<name>'",
    )
    format: str = Field(default=DEFAULT_FORMAT, description="Render format name")
    cron_expression: str = Field(
        default=DEFAULT_CRON_EXPRESSION,
        description="Quartz or crontab expression",
    )
    parameters: dict[str, str] = Field(
        default_factory=dict,
        description="Ordered report parameter values",
    )
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("format", "cron_expression", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_FORMAT if info.field_name == "format" else DEFAULT_CRON_EXPRESSION
        return value.strip() if isinstance(value, str) else value

    @field_validator("parameters", mode="before")
    @classmethod
    def _stringify_parameters(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value

    @field_validator("delivery", mode="before")
    @classmethod
    def _delivery_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def key(self) -> str:
        """Case-insensitive identity of the task."""
        return self.name.casefold()

    def resolve_report_path(self, folder_path: str = "") -> str:
        """Return the catalog path of the report to execute.

        Tasks without an explicit path run ``<folder_path>/<name>``.
        """
        if self.report_path and self.report_path.strip():
            return self.report_path.strip()
        folder = folder_path.strip().rstrip("/")
        return f"{folder}/{self.name}" if folder else f"/{self.name}"


@dataclass(frozen=True)
class RenderedArtifact:
    """A rendered report held in memory for the duration of one run.

    Attributes:
        content: Raw rendered bytes.
        render_format: Format the report was rendered in.
        file_extension: Extension with a leading dot (e.g. ``.pdf``).
        mime_type: MIME type of the content.
    """

    content: bytes
    render_format: RenderFormat
    file_extension: str
    mime_type: str

    @property
    def size(self) -> int:
        """Content length in bytes."""
        return len(self.content)


__all__ = [
    "DEFAULT_CRON_EXPRESSION",
    "DEFAULT_FORMAT",
    "DeliveryConfig",
    "DeliveryMethod",
    "EmailDelivery",
    "RenderedArtifact",
    "ReportTask",
    "SftpDelivery",
]
