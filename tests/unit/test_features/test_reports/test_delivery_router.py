"""Unit tests for file naming and delivery routing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from report_scheduler.core.exceptions import ConfigurationError, DeliveryError
from report_scheduler.core.settings import EmailSettings
from report_scheduler.features.reports.delivery import (
    DeliveryRouter,
    default_file_name,
    resolve_file_name,
    sanitize_file_name,
)
from report_scheduler.features.reports.models import DeliveryMethod, ReportTask
from report_scheduler.infra.email import ReportEmailSender

MOMENT = datetime(2025, 3, 4, 5, 6, 7, tzinfo=UTC)


@pytest.mark.unit
class TestFileNames:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Sales Report", "Sales_Report"),
            ("a/b\\c:d*e?f", "a_b_c_d_e_f"),
            ('<q>"|', "_q___"),
            ("  padded  ", "padded"),
            ("", "report"),
            (None, "report"),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_file_name(raw) == expected

    def test_default_name_uses_utc_timestamp(self):
        local = MOMENT.astimezone(timezone(timedelta(hours=2)))

        assert default_file_name("Sales Report", ".pdf", local) == "Sales_Report_20250304_050607.pdf"

    def test_override_without_extension_gets_one(self):
        assert resolve_file_name("custom", "Daily", ".pdf", MOMENT) == "custom.pdf"

    def test_override_with_extension_is_kept(self):
        assert resolve_file_name("custom.csv", "Daily", ".pdf", MOMENT) == "custom.csv"

    @pytest.mark.parametrize("override", [None, "", "   "])
    def test_blank_override_uses_default(self, override):
        assert resolve_file_name(override, "Daily", ".pdf", MOMENT) == "Daily_20250304_050607.pdf"


@pytest.fixture
def uploader():
    uploader = AsyncMock()
    uploader.upload.side_effect = lambda content, directory, name: f"{directory}/{name}"
    return uploader


@pytest.fixture
def sender():
    return AsyncMock()


@pytest.fixture
def router(tmp_path, uploader, sender):
    return DeliveryRouter(tmp_path / "out", sftp=uploader, email=sender, clock=lambda: MOMENT)


@pytest.mark.unit
class TestDeliveryRouter:
    async def test_sftp_delivery_saves_locally_then_uploads(
        self, router, uploader, sender, sftp_task, pdf_artifact, tmp_path
    ):
        receipt = await router.deliver(sftp_task, pdf_artifact)

        expected_name = "Daily_20250304_050607.pdf"
        assert receipt.method is DeliveryMethod.SFTP
        assert receipt.file_name == expected_name
        assert receipt.local_path == tmp_path / "out" / expected_name
        assert receipt.local_path.read_bytes() == pdf_artifact.content
        assert receipt.remote_path == f"/reports/{expected_name}"
        uploader.upload.assert_awaited_once_with(pdf_artifact.content, "/reports", expected_name)
        sender.send_report.assert_not_awaited()

    async def test_sftp_file_name_override(self, router, uploader, pdf_artifact):
        task = ReportTask(name="Daily", delivery={"sftp": {"file_name": "custom"}})

        receipt = await router.deliver(task, pdf_artifact)

        assert receipt.file_name == "custom.pdf"
        assert receipt.local_path.name == "custom.pdf"
        assert receipt.local_path.read_bytes() == pdf_artifact.content
        uploader.upload.assert_awaited_once_with(pdf_artifact.content, None, "custom.pdf")

    async def test_email_delivery(self, router, uploader, sender, email_task, pdf_artifact):
        receipt = await router.deliver(email_task, pdf_artifact)

        assert receipt.method is DeliveryMethod.EMAIL
        assert receipt.file_name == "Sales_Report_20250304_050607.pdf"
        assert receipt.remote_path is None
        sender.send_report.assert_awaited_once_with(
            email_task, pdf_artifact, "Sales_Report_20250304_050607.pdf"
        )
        uploader.upload.assert_not_awaited()

    async def test_email_attachment_override(self, router, sender, pdf_artifact):
        task = ReportTask(
            name="Daily",
            delivery={
                "method": "email",
                "email": {"to": ["ops@example.com"], "attachment_file_name": "custom.csv"},
            },
        )

        receipt = await router.deliver(task, pdf_artifact)

        assert receipt.file_name == "custom.csv"
        assert receipt.local_path.name == "custom.csv"
        assert sender.send_report.await_args.args[2] == "custom.csv"

    async def test_unknown_method_routes_to_sftp(self, router, uploader, pdf_artifact):
        task = ReportTask(name="Daily", delivery={"method": "fax"})

        receipt = await router.deliver(task, pdf_artifact)

        assert receipt.method is DeliveryMethod.SFTP
        uploader.upload.assert_awaited_once()

    async def test_upload_failure_propagates_after_local_save(
        self, router, uploader, sftp_task, pdf_artifact, tmp_path
    ):
        uploader.upload.side_effect = DeliveryError("refused", channel="sftp")

        with pytest.raises(DeliveryError):
            await router.deliver(sftp_task, pdf_artifact)

        assert (tmp_path / "out" / "Daily_20250304_050607.pdf").exists()

    async def test_email_without_recipients_fails_before_smtp(self, tmp_path, uploader, pdf_artifact):
        smtp_factory = AsyncMock()
        sender = ReportEmailSender(
            EmailSettings(smtp_host="smtp.example.com", from_address="reports@example.com"),
            smtp_factory=smtp_factory,
        )
        router = DeliveryRouter(tmp_path, sftp=uploader, email=sender, clock=lambda: MOMENT)
        task = ReportTask(name="Daily", delivery={"method": "email", "email": {"to": ["  "]}})

        with pytest.raises(ConfigurationError, match="no recipients"):
            await router.deliver(task, pdf_artifact)

        smtp_factory.assert_not_called()
