"""SMTP delivery of rendered reports using aiosmtplib.

Supports:
- STARTTLS (port 587) and implicit SSL/TLS (port 465)
- Plain connections (port 25)
- Optional authentication
- To/Cc headers with Bcc recipients kept in the SMTP envelope only

Each report is sent once; transport failures surface as DeliveryError.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
import logging
import ssl
from typing import TYPE_CHECKING, Any
import uuid

import aiosmtplib

from report_scheduler.core.exceptions import ConfigurationError, DeliveryError

if TYPE_CHECKING:
    from collections.abc import Callable

    from report_scheduler.core.settings.email import EmailSettings
    from report_scheduler.features.reports.models import RenderedArtifact, ReportTask

logger = logging.getLogger(__name__)

DEFAULT_BODY = "Report attached."


def _clean(addresses: list[str]) -> list[str]:
    return [address.strip() for address in addresses if address and address.strip()]


class ReportEmailSender:
    """Sends a rendered report as an email attachment.

    Example:
        ```python
        sender = ReportEmailSender(get_email_settings())
        await sender.send_report(task, artifact, "Daily_20250101_060000.pdf")
        ```
    """

    def __init__(
        self,
        settings: EmailSettings,
        *,
        smtp_factory: Callable[..., aiosmtplib.SMTP] | None = None,
    ) -> None:
        """Initialize the sender.

        Args:
            settings: SMTP settings.
            smtp_factory: Callable building the SMTP client (defaults to aiosmtplib.SMTP).
        """
        self._settings = settings
        self._smtp_factory = smtp_factory or aiosmtplib.SMTP

    def _create_ssl_context(self) -> ssl.SSLContext | None:
        if not (self._settings.use_tls or self._settings.use_ssl):
            return None

        context = ssl.create_default_context()
        if not self._settings.validate_certs:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def build_message(
        self,
        task: ReportTask,
        artifact: RenderedArtifact,
        attachment_file_name: str,
    ) -> tuple[MIMEMultipart, list[str]]:
        """Build the MIME message and the full envelope recipient list."""
        delivery = task.delivery.email
        settings = self._settings

        to = _clean(delivery.to)
        cc = _clean(delivery.cc)
        bcc = _clean(delivery.bcc)

        mime_msg = MIMEMultipart("mixed")
        from_address = str(settings.from_address)
        mime_msg["From"] = formataddr((settings.from_name, from_address)) if settings.from_name else from_address
        if to:
            mime_msg["To"] = ", ".join(to)
        if cc:
            mime_msg["Cc"] = ", ".join(cc)
        mime_msg["Subject"] = delivery.subject.strip() or f"{task.name} report"
        mime_msg["Message-ID"] = f"<{uuid.uuid4()}@{settings.smtp_host}>"
        mime_msg["Date"] = datetime.now(UTC).strftime("%a, %d %b %Y %H:%M:%S +0000")

        body = delivery.body if delivery.body.strip() else DEFAULT_BODY
        mime_msg.attach(MIMEText(body, "html" if delivery.is_body_html else "plain", "utf-8"))

        maintype, _, subtype = artifact.mime_type.partition("/")
        part = MIMEBase(maintype or "application", subtype or "octet-stream", name=attachment_file_name)
        part.set_payload(artifact.content)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=attachment_file_name)
        mime_msg.attach(part)

        return mime_msg, [*to, *cc, *bcc]

    async def send_report(
        self,
        task: ReportTask,
        artifact: RenderedArtifact,
        attachment_file_name: str,
    ) -> None:
        """Send the report to the task's recipients.

        Raises:
            ConfigurationError: No recipients, no SMTP host or no sender address.
            DeliveryError: The SMTP exchange failed.
        """
        if not task.delivery.email.has_recipients:
            msg = f"Task '{task.name}' is configured for email delivery but has no recipients."
            raise ConfigurationError(msg, task_name=task.name)
        if not self._settings.smtp_host.strip():
            msg = "Email SMTP host is not configured."
            raise ConfigurationError(msg, task_name=task.name)
        if self._settings.from_address is None:
            msg = "Email from address is not configured."
            raise ConfigurationError(msg, task_name=task.name)

        mime_msg, recipients = self.build_message(task, artifact, attachment_file_name)

        smtp_kwargs: dict[str, Any] = {
            "hostname": self._settings.smtp_host.strip(),
            "port": self._settings.smtp_port,
            "use_tls": self._settings.use_ssl,  # Implicit TLS
            "start_tls": self._settings.use_tls,  # STARTTLS
            "tls_context": self._create_ssl_context(),
            "timeout": self._settings.timeout,
        }

        logger.info(
            "Sending report via email",
            extra={
                "task_name": task.name,
                "smtp_url": self._settings.get_smtp_url(),
                "recipient_count": len(recipients),
                "attachment": attachment_file_name,
            },
        )

        try:
            smtp = self._smtp_factory(**smtp_kwargs)
            async with smtp:
                if self._settings.requires_auth:
                    password = (
                        self._settings.smtp_password.get_secret_value()
                        if self._settings.smtp_password
                        else ""
                    )
                    await smtp.login(self._settings.smtp_username, password)
                errors, _response = await smtp.send_message(
                    mime_msg,
                    sender=str(self._settings.from_address),
                    recipients=recipients,
                )
        except aiosmtplib.SMTPException as exc:
            msg = f"SMTP delivery failed for task '{task.name}': {exc}"
            raise DeliveryError(msg, channel="email", task_name=task.name) from exc
        except OSError as exc:
            msg = f"SMTP connection failed for task '{task.name}': {exc}"
            raise DeliveryError(msg, channel="email", task_name=task.name) from exc

        if errors:
            logger.warning(
                "Some SMTP recipients rejected",
                extra={"task_name": task.name, "rejected": sorted(errors)},
            )


__all__ = ["DEFAULT_BODY", "ReportEmailSender"]
