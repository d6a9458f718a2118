"""Pytest configuration and shared fixtures.

Organization:
    - Environment: isolate settings from local conf/ files and caches
    - Task Fixtures: report tasks for each delivery method
    - Artifact Fixtures: rendered report content

SOAP response builders and HTTP fakes live in tests/utils.py.
"""

from __future__ import annotations

from collections.abc import Iterator
import os

import pytest

from report_scheduler.core.settings import clear_all_caches
from report_scheduler.features.reports.formats import RenderFormat
from report_scheduler.features.reports.models import RenderedArtifact, ReportTask
from report_scheduler.infra.logging.context import clear_log_context

# Keep tests away from any conf/*.yaml in the working tree.
for _name in ("REPORT_SERVER", "OUTPUT", "SFTP", "EMAIL", "TASK_SOURCE", "SCHEDULER", "LOGGING"):
    os.environ.setdefault(f"{_name}_CONFIG_DIR", "/nonexistent/report-scheduler-conf")


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_state() -> Iterator[None]:
    """Reset cached settings and log context around every test."""
    clear_all_caches()
    clear_log_context()
    yield
    clear_all_caches()
    clear_log_context()


# ============================================================================
# Task Fixtures
# ============================================================================


@pytest.fixture
def sftp_task() -> ReportTask:
    """A PDF task delivered over SFTP."""
    return ReportTask(
        name="Daily",
        report_path="/Finance/Daily",
        format="PDF",
        cron_expression="0 0 6 * * ?",
        parameters={"Region": "EMEA"},
        delivery={"method": "sftp", "sftp": {"remote_directory": "/reports"}},
    )


@pytest.fixture
def email_task() -> ReportTask:
    """An Excel task delivered by email."""
    return ReportTask(
        name="Sales Report",
        format="EXCEL",
        delivery={
            "method": "email",
            "email": {"to": ["finance@example.com"], "bcc": ["audit@example.com"]},
        },
    )


# ============================================================================
# Artifact Fixtures
# ============================================================================


@pytest.fixture
def pdf_artifact() -> RenderedArtifact:
    """A small rendered PDF."""
    return RenderedArtifact(
        content=b"%PDF-1.7 test",
        render_format=RenderFormat.PDF,
        file_extension=".pdf",
        mime_type="application/pdf",
    )
