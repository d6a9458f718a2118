"""Integration tests: resolve -> execute -> deliver through the wired runtime.

The report server, task-definition API, SSH server and SMTP server are faked
at their client libraries (httpx transports, paramiko.SSHClient, aiosmtplib.SMTP);
everything in between is the real pipeline.
"""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock, MagicMock

import aiosmtplib
import httpx
import paramiko
import pytest

from report_scheduler.core.exceptions import ProtocolFaultError
from report_scheduler.core.settings import (
    EmailSettings,
    OutputSettings,
    ReportServerSettings,
    SftpSettings,
    TaskSourceSettings,
)
from report_scheduler.features.reports.dependencies import report_runtime
from report_scheduler.features.reports.models import DeliveryMethod, ReportTask
from report_scheduler.features.reports.orchestrator import RunState
from report_scheduler.features.reports.resolver import TaskResolver
from report_scheduler.infra.external import TaskSourceClient
from tests.utils import (
    RecordingTransport,
    json_response,
    operation_of,
    report_server_handler,
    soap11_fault,
)

PDF_BYTES = b"%PDF-1.7 test"


class MemorySftp:
    def __init__(self) -> None:
        self.directories: set[str] = set()
        self.files: dict[str, bytes] = {}

    def stat(self, path):
        if path not in self.directories:
            raise FileNotFoundError(path)

    def mkdir(self, path):
        self.directories.add(path)

    def putfo(self, fileobj, remote_path):
        self.files[remote_path] = fileobj.read()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


@pytest.fixture
def remote_sftp(monkeypatch):
    """Replace paramiko.SSHClient with an in-memory server."""
    sftp = MemorySftp()
    ssh = MagicMock()
    ssh.__enter__.return_value = ssh
    ssh.open_sftp.return_value = sftp
    monkeypatch.setattr(paramiko, "SSHClient", MagicMock(return_value=ssh))
    return sftp


@pytest.fixture
def smtp(monkeypatch):
    """Replace aiosmtplib.SMTP with a recording double."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.send_message = AsyncMock(return_value=({}, "OK"))
    factory = MagicMock(return_value=client)
    monkeypatch.setattr(aiosmtplib, "SMTP", factory)
    return client


@pytest.fixture
def unavailable_task_source():
    """Task-definition API answering 503."""
    return TaskSourceClient(
        TaskSourceSettings(base_url="http://options.test", api_key="k"),
        transport=httpx.MockTransport(lambda request: json_response({"error": "down"}, 503)),
    )


def _runtime(tmp_path, resolver, transport):
    return report_runtime(
        report_server_settings=ReportServerSettings(
            base_url="http://reports.test/ReportServer",
            username="svc",
            password="pw",
            domain="CORP",
        ),
        output_settings=OutputSettings(directory=tmp_path / "out"),
        sftp_settings=SftpSettings(host="sftp.test", username="svc", password="pw"),
        email_settings=EmailSettings(
            smtp_host="smtp.test", from_address="reports@example.com", use_tls=False
        ),
        resolver=resolver,
        transport=transport,
    )


@pytest.mark.integration
async def test_daily_sftp_run_with_local_fallback(tmp_path, remote_sftp, unavailable_task_source):
    resolver = TaskResolver(
        unavailable_task_source,
        [
            ReportTask(
                name="Daily",
                report_path="/Finance/Daily",
                parameters={"Region": "EMEA"},
                delivery={"method": "sftp", "sftp": {"remote_directory": "exports//daily"}},
            )
        ],
    )
    transport = RecordingTransport(report_server_handler)

    async with _runtime(tmp_path, resolver, transport) as runtime:
        result = await runtime.orchestrator.run("Daily")

    assert result.state is RunState.DONE
    assert [operation_of(r) for r in transport.requests] == [
        "LoadReport",
        "SetExecutionParameters",
        "Render",
    ]
    expected_auth = "Basic " + base64.b64encode(b"CORP\\svc:pw").decode()
    assert transport.requests[0].headers["Authorization"] == expected_auth
    assert transport.requests[0].url.path == "/ReportServer/ReportExecution2005.asmx"

    receipt = result.receipt
    assert receipt.method is DeliveryMethod.SFTP
    assert receipt.local_path.parent == tmp_path / "out"
    assert receipt.local_path.read_bytes() == PDF_BYTES
    assert receipt.remote_path == f"/exports/daily/{receipt.file_name}"
    assert remote_sftp.files == {receipt.remote_path: PDF_BYTES}
    assert remote_sftp.directories == {"/exports", "/exports/daily"}


@pytest.mark.integration
async def test_email_run(tmp_path, smtp):
    resolver = TaskResolver(
        None,
        [
            ReportTask(
                name="Sales Report",
                delivery={
                    "method": "email",
                    "email": {"to": ["finance@example.com"], "attachmentFileName": "sales"},
                },
            )
        ],
    )

    async with _runtime(tmp_path, resolver, RecordingTransport(report_server_handler)) as runtime:
        result = await runtime.orchestrator.run("sales report")

    assert result.state is RunState.DONE
    assert result.receipt.file_name == "sales.pdf"
    assert result.receipt.local_path.name == "sales.pdf"
    message = smtp.send_message.await_args.args[0]
    assert message["Subject"] == "Sales Report report"
    assert message.get_payload()[1].get_filename() == "sales.pdf"


@pytest.mark.integration
async def test_fault_stops_run_before_delivery(tmp_path, remote_sftp):
    resolver = TaskResolver(None, [ReportTask(name="Daily")])

    def handler(request: httpx.Request) -> httpx.Response:
        if operation_of(request) == "Render":
            return httpx.Response(500, content=soap11_fault("Rendering failed", "rsProcessingAborted"))
        return report_server_handler(request)

    async with _runtime(tmp_path, resolver, RecordingTransport(handler)) as runtime:
        with pytest.raises(ProtocolFaultError, match="rsProcessingAborted"):
            await runtime.orchestrator.run("Daily")

    assert remote_sftp.files == {}
    assert not (tmp_path / "out").exists()


@pytest.mark.integration
async def test_unknown_task_is_skipped(tmp_path):
    transport = RecordingTransport(report_server_handler)

    async with _runtime(tmp_path, TaskResolver(None, []), transport) as runtime:
        result = await runtime.orchestrator.run("Missing")

    assert result.state is RunState.SKIPPED
    assert transport.requests == []
