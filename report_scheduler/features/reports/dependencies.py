"""Wiring of the report pipeline from settings.

This is the only place in the reports feature that consults the cached settings
loaders; everything below it receives its collaborators through constructors.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

import httpx

from report_scheduler.core.exceptions import ConfigurationError
from report_scheduler.core.settings import (
    get_email_settings,
    get_output_settings,
    get_report_server_settings,
    get_scheduler_settings,
    get_sftp_settings,
    get_task_source_settings,
)
from report_scheduler.features.reports.delivery import DeliveryRouter
from report_scheduler.features.reports.orchestrator import ExecutionOrchestrator
from report_scheduler.features.reports.resolver import TaskResolver
from report_scheduler.features.reports.session import ReportExecutionClient
from report_scheduler.features.reports.soap import SoapClient
from report_scheduler.infra.email import ReportEmailSender
from report_scheduler.infra.external import BaseHTTPClient, TaskSourceClient
from report_scheduler.infra.sftp import SftpUploader

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from report_scheduler.core.settings import (
        EmailSettings,
        OutputSettings,
        ReportServerSettings,
        SchedulerSettings,
        SftpSettings,
        TaskSourceSettings,
    )

logger = logging.getLogger(__name__)


def build_task_resolver(
    task_source_settings: TaskSourceSettings | None = None,
    scheduler_settings: SchedulerSettings | None = None,
) -> TaskResolver:
    """Create a resolver over the remote task source and the local task list."""
    task_source_settings = task_source_settings or get_task_source_settings()
    scheduler_settings = scheduler_settings or get_scheduler_settings()
    remote = TaskSourceClient(task_source_settings) if task_source_settings.is_configured else None
    return TaskResolver(remote, scheduler_settings.report_tasks)


def build_report_server_client(
    settings: ReportServerSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseHTTPClient:
    """Create the HTTP client for the report server.

    Raises:
        ConfigurationError: No report server URL is configured.
    """
    if not settings.is_configured:
        msg = "Report server base URL is not configured (REPORT_SERVER_BASE_URL)."
        raise ConfigurationError(msg)

    auth: httpx.Auth | None = None
    if settings.account_name:
        password = settings.password.get_secret_value() if settings.password else ""
        auth = httpx.BasicAuth(settings.account_name, password)

    return BaseHTTPClient(
        base_url=settings.service_url,
        timeout=settings.timeout_seconds,
        auth=auth,
        transport=transport,
    )


@dataclass
class ReportRuntime:
    """Collaborators for report runs, sharing one report server connection pool."""

    orchestrator: ExecutionOrchestrator
    resolver: TaskResolver
    http_client: BaseHTTPClient


@asynccontextmanager
async def report_runtime(
    *,
    report_server_settings: ReportServerSettings | None = None,
    output_settings: OutputSettings | None = None,
    sftp_settings: SftpSettings | None = None,
    email_settings: EmailSettings | None = None,
    resolver: TaskResolver | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[ReportRuntime]:
    """Build the report pipeline and close its HTTP client on exit.

    Example:
        ```python
        async with report_runtime() as runtime:
            result = await runtime.orchestrator.run("Daily")
        ```
    """
    server = report_server_settings or get_report_server_settings()
    output = output_settings or get_output_settings()

    http_client = build_report_server_client(server, transport=transport)
    soap = SoapClient(http_client, server.execution_endpoint.lstrip("/"))
    executor = ReportExecutionClient(
        soap,
        folder_path=server.folder_path,
        parameter_language=server.parameter_language,
    )
    router = DeliveryRouter(
        output.directory,
        sftp=SftpUploader(sftp_settings or get_sftp_settings()),
        email=ReportEmailSender(email_settings or get_email_settings()),
    )
    resolver = resolver or build_task_resolver()

    logger.debug(
        "Report runtime ready",
        extra={"report_server": server.service_url, "output_directory": str(output.directory)},
    )
    try:
        yield ReportRuntime(
            orchestrator=ExecutionOrchestrator(resolver, executor, router),
            resolver=resolver,
            http_client=http_client,
        )
    finally:
        await http_client.close()


__all__ = [
    "ReportRuntime",
    "build_report_server_client",
    "build_task_resolver",
    "report_runtime",
]
