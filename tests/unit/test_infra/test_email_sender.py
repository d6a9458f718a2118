"""Unit tests for SMTP report delivery."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiosmtplib
import pytest

from report_scheduler.core.exceptions import ConfigurationError, DeliveryError
from report_scheduler.core.settings import EmailSettings
from report_scheduler.features.reports.models import ReportTask
from report_scheduler.infra.email import DEFAULT_BODY, ReportEmailSender


@pytest.fixture
def settings():
    return EmailSettings(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_username="mailer",
        smtp_password="pw",
        from_address="reports@example.com",
        from_name="Report Scheduler",
    )


@pytest.fixture
def smtp():
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.login = AsyncMock()
    client.send_message = AsyncMock(return_value=({}, "OK"))
    return client


@pytest.fixture
def smtp_factory(smtp):
    return MagicMock(return_value=smtp)


@pytest.mark.unit
class TestBuildMessage:
    def test_headers_and_recipients(self, settings, email_task, pdf_artifact):
        sender = ReportEmailSender(settings)

        message, recipients = sender.build_message(email_task, pdf_artifact, "Sales_Report.pdf")

        assert message["From"] == "Report Scheduler <reports@example.com>"
        assert message["To"] == "finance@example.com"
        assert message["Bcc"] is None
        assert message["Subject"] == "Sales Report report"
        assert recipients == ["finance@example.com", "audit@example.com"]

    def test_default_body_and_attachment(self, settings, email_task, pdf_artifact):
        message, _ = ReportEmailSender(settings).build_message(
            email_task, pdf_artifact, "Sales_Report.pdf"
        )

        body, attachment = message.get_payload()
        assert body.get_content_type() == "text/plain"
        assert body.get_payload(decode=True).decode() == DEFAULT_BODY
        assert attachment.get_content_type() == "application/pdf"
        assert attachment.get_filename() == "Sales_Report.pdf"
        assert attachment.get_payload(decode=True) == pdf_artifact.content

    def test_html_body_and_custom_subject(self, settings, pdf_artifact):
        task = ReportTask(
            name="Daily",
            delivery={
                "method": "email",
                "email": {
                    "to": ["a@example.com"],
                    "cc": ["b@example.com", " "],
                    "subject": "Morning numbers",
                    "body": "<p>See attached</p>",
                    "isBodyHtml": True,
                },
            },
        )

        message, recipients = ReportEmailSender(settings).build_message(task, pdf_artifact, "d.pdf")

        assert message["Subject"] == "Morning numbers"
        assert message["Cc"] == "b@example.com"
        assert message.get_payload()[0].get_content_type() == "text/html"
        assert recipients == ["a@example.com", "b@example.com"]


@pytest.mark.unit
class TestSendReport:
    async def test_sends_with_starttls_and_login(self, settings, smtp, smtp_factory, email_task, pdf_artifact):
        sender = ReportEmailSender(settings, smtp_factory=smtp_factory)

        await sender.send_report(email_task, pdf_artifact, "Sales_Report.pdf")

        kwargs = smtp_factory.call_args.kwargs
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 587
        assert kwargs["start_tls"] is True
        assert kwargs["use_tls"] is False
        smtp.login.assert_awaited_once_with("mailer", "pw")
        send_kwargs = smtp.send_message.await_args.kwargs
        assert send_kwargs["sender"] == "reports@example.com"
        assert send_kwargs["recipients"] == ["finance@example.com", "audit@example.com"]

    async def test_no_login_without_username(self, smtp, smtp_factory, email_task, pdf_artifact):
        settings = EmailSettings(
            smtp_host="smtp.example.com", from_address="reports@example.com", use_tls=False
        )

        await ReportEmailSender(settings, smtp_factory=smtp_factory).send_report(
            email_task, pdf_artifact, "x.pdf"
        )

        smtp.login.assert_not_awaited()
        assert smtp_factory.call_args.kwargs["tls_context"] is None

    async def test_no_recipients(self, settings, smtp_factory, pdf_artifact):
        task = ReportTask(name="Daily", delivery={"method": "email"})

        with pytest.raises(ConfigurationError, match="no recipients"):
            await ReportEmailSender(settings, smtp_factory=smtp_factory).send_report(
                task, pdf_artifact, "x.pdf"
            )
        smtp_factory.assert_not_called()

    async def test_missing_host(self, smtp_factory, email_task, pdf_artifact):
        settings = EmailSettings(smtp_host="", from_address="reports@example.com")

        with pytest.raises(ConfigurationError, match="SMTP host"):
            await ReportEmailSender(settings, smtp_factory=smtp_factory).send_report(
                email_task, pdf_artifact, "x.pdf"
            )

    async def test_missing_from_address(self, smtp_factory, email_task, pdf_artifact):
        settings = EmailSettings(smtp_host="smtp.example.com")

        with pytest.raises(ConfigurationError, match="from address"):
            await ReportEmailSender(settings, smtp_factory=smtp_factory).send_report(
                email_task, pdf_artifact, "x.pdf"
            )

    async def test_smtp_failure_becomes_delivery_error(self, settings, smtp, smtp_factory, email_task, pdf_artifact):
        smtp.send_message.side_effect = aiosmtplib.SMTPRecipientsRefused([])

        with pytest.raises(DeliveryError) as exc_info:
            await ReportEmailSender(settings, smtp_factory=smtp_factory).send_report(
                email_task, pdf_artifact, "x.pdf"
            )

        assert exc_info.value.channel == "email"
        assert exc_info.value.task_name == "Sales Report"

    async def test_connection_failure_becomes_delivery_error(self, settings, smtp, smtp_factory, email_task, pdf_artifact):
        smtp.__aenter__.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(DeliveryError, match="connection failed"):
            await ReportEmailSender(settings, smtp_factory=smtp_factory).send_report(
                email_task, pdf_artifact, "x.pdf"
            )
