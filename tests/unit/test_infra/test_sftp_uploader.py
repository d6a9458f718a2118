"""Unit tests for SFTP path handling and uploads."""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import MagicMock

import paramiko
import pytest

from report_scheduler.core.exceptions import ConfigurationError, DeliveryError
from report_scheduler.core.settings import SftpSettings
from report_scheduler.infra.sftp import (
    SftpUploader,
    ensure_remote_directory,
    join_remote_path,
    normalize_remote_path,
)


@pytest.mark.unit
class TestRemotePaths:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("reports/", "/reports/"),
            ("//a//b", "/a/b"),
            ("  /exports ", "/exports"),
            ("", "/"),
            (None, "/"),
            ("/", "/"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_remote_path(raw) == expected

    def test_join(self):
        assert join_remote_path("/reports", "a.pdf") == "/reports/a.pdf"
        assert join_remote_path("/reports/", "a.pdf") == "/reports/a.pdf"
        assert join_remote_path("/", "a.pdf") == "/a.pdf"


class FakeSftp:
    """In-memory stand-in for paramiko.SFTPClient."""

    def __init__(self, existing: set[str] | None = None) -> None:
        self.directories = set(existing or set())
        self.files: dict[str, bytes] = {}
        self.created: list[str] = []

    def stat(self, path: str):
        if path not in self.directories:
            raise FileNotFoundError(path)
        return MagicMock()

    def mkdir(self, path: str) -> None:
        self.directories.add(path)
        self.created.append(path)

    def putfo(self, fileobj, remote_path: str):
        self.files[remote_path] = fileobj.read()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


@pytest.fixture
def sftp():
    return FakeSftp(existing={"/exports"})


@pytest.fixture
def ssh(sftp):
    client = MagicMock(spec=paramiko.SSHClient)
    client.__enter__.return_value = client
    client.open_sftp.return_value = sftp
    return client


@pytest.fixture
def settings():
    return SftpSettings(host="sftp.test", port=2222, username="svc", password="pw", remote_directory="/default")


@pytest.mark.unit
class TestEnsureRemoteDirectory:
    def test_creates_only_missing_segments(self, sftp):
        ensure_remote_directory(sftp, "/exports/daily/2025")

        assert sftp.created == ["/exports/daily", "/exports/daily/2025"]

    def test_root_needs_nothing(self, sftp):
        ensure_remote_directory(sftp, "/")

        assert sftp.created == []


@pytest.mark.unit
class TestSftpUploader:
    async def test_upload_writes_file(self, settings, ssh, sftp):
        uploader = SftpUploader(settings, client_factory=lambda: ssh)

        remote_path = await uploader.upload(b"data", "exports//daily", "Daily.pdf")

        assert remote_path == "/exports/daily/Daily.pdf"
        assert sftp.files == {"/exports/daily/Daily.pdf": b"data"}
        assert sftp.created == ["/exports/daily"]
        ssh.connect.assert_called_once_with(
            "sftp.test",
            port=2222,
            username="svc",
            password="pw",
            timeout=settings.timeout_seconds,
            allow_agent=False,
            look_for_keys=False,
        )
        ssh.set_missing_host_key_policy.assert_called_once()

    async def test_blank_directory_uses_settings_default(self, settings, ssh, sftp):
        uploader = SftpUploader(settings, client_factory=lambda: ssh)

        remote_path = await uploader.upload(b"data", "  ", "Daily.pdf")

        assert remote_path == "/default/Daily.pdf"

    async def test_missing_host_raises_configuration_error(self, ssh):
        uploader = SftpUploader(SftpSettings(host=""), client_factory=lambda: ssh)

        with pytest.raises(ConfigurationError):
            await uploader.upload(b"data", "/exports", "Daily.pdf")
        ssh.connect.assert_not_called()

    async def test_authentication_failure_becomes_delivery_error(self, settings, ssh):
        ssh.connect.side_effect = paramiko.AuthenticationException("bad password")
        uploader = SftpUploader(settings, client_factory=lambda: ssh)

        with pytest.raises(DeliveryError) as exc_info:
            await uploader.upload(b"data", "/exports", "Daily.pdf")

        assert exc_info.value.channel == "sftp"
        assert "bad password" in str(exc_info.value)

    async def test_connection_failure_becomes_delivery_error(self, settings, ssh):
        ssh.connect.side_effect = ConnectionRefusedError("refused")
        uploader = SftpUploader(settings, client_factory=lambda: ssh)

        with pytest.raises(DeliveryError):
            await uploader.upload(b"data", "/exports", "Daily.pdf")

    async def test_cancelled_upload_skips_transfer(self, settings, ssh, sftp):
        connecting = threading.Event()
        release = threading.Event()
        closed = threading.Event()

        def slow_connect(*args, **kwargs):
            connecting.set()
            release.wait(5)

        ssh.connect.side_effect = slow_connect
        ssh.__exit__.side_effect = lambda *exc_info: closed.set()
        uploader = SftpUploader(settings, client_factory=lambda: ssh)

        upload = asyncio.create_task(uploader.upload(b"data", "/exports/daily", "Daily.pdf"))
        await asyncio.to_thread(connecting.wait, 5)
        upload.cancel()
        with pytest.raises(asyncio.CancelledError):
            await upload

        release.set()
        await asyncio.to_thread(closed.wait, 5)

        assert sftp.created == ["/exports/daily"]
        assert sftp.files == {}
