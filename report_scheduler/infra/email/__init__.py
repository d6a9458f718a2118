"""Email delivery for rendered reports (aiosmtplib)."""

from report_scheduler.infra.email.smtp import DEFAULT_BODY, ReportEmailSender

__all__ = ["DEFAULT_BODY", "ReportEmailSender"]
