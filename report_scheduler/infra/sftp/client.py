"""SFTP delivery of rendered reports using paramiko.

paramiko is blocking, so each upload runs in a worker thread via
``asyncio.to_thread``. Every upload opens its own connection, creates any
missing directory segments and writes the file, replacing an existing one.

Cancelling the awaiting task cannot interrupt the worker thread. The thread
checks for cancellation once the directories exist and skips the write if the
upload was cancelled; a transfer already in progress runs to completion.
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
import threading
from typing import TYPE_CHECKING

import paramiko

from report_scheduler.core.exceptions import ConfigurationError, DeliveryError

if TYPE_CHECKING:
    from collections.abc import Callable

    from report_scheduler.core.settings.sftp import SftpSettings

logger = logging.getLogger(__name__)

_REPEATED_SLASHES = re.compile(r"/{2,}")


def normalize_remote_path(directory: str | None) -> str:
    """Normalize a remote directory to an absolute path without repeated slashes.

    Empty or blank input maps to ``/``.
    """
    if directory is None or not directory.strip():
        return "/"
    path = directory.strip()
    if not path.startswith("/"):
        path = "/" + path
    return _REPEATED_SLASHES.sub("/", path)


def join_remote_path(directory: str, file_name: str) -> str:
    """Join a normalized directory and a file name with exactly one slash."""
    directory = normalize_remote_path(directory)
    if directory.endswith("/"):
        return directory + file_name
    return f"{directory}/{file_name}"


def ensure_remote_directory(sftp: paramiko.SFTPClient, directory: str) -> None:
    """Create each missing segment of ``directory``, shallowest first."""
    current = ""
    for segment in (part for part in directory.split("/") if part):
        current = f"{current}/{segment}"
        try:
            sftp.stat(current)
        except FileNotFoundError:
            logger.debug("Creating remote directory", extra={"remote_directory": current})
            sftp.mkdir(current)


class SftpUploader:
    """Uploads report content to the configured SFTP server.

    Example:
        ```python
        uploader = SftpUploader(get_sftp_settings())
        remote_path = await uploader.upload(content, "/incoming", "Daily_20250101_060000.pdf")
        ```
    """

    def __init__(
        self,
        settings: SftpSettings,
        *,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            settings: SFTP connection settings.
            client_factory: Callable building the SSH client (defaults to paramiko.SSHClient).
        """
        self._settings = settings
        self._client_factory = client_factory or paramiko.SSHClient

    def _upload_sync(
        self,
        content: bytes,
        directory: str,
        remote_path: str,
        cancelled: threading.Event,
    ) -> None:
        settings = self._settings
        with self._client_factory() as ssh:
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
            ssh.connect(
                settings.host.strip(),
                port=settings.port,
                username=settings.username,
                password=settings.password.get_secret_value() if settings.password else None,
                timeout=settings.timeout_seconds,
                allow_agent=False,
                look_for_keys=False,
            )
            with ssh.open_sftp() as sftp:
                ensure_remote_directory(sftp, directory)
                if cancelled.is_set():
                    logger.warning(
                        "SFTP upload cancelled before transfer",
                        extra={"remote_path": remote_path},
                    )
                    return
                sftp.putfo(io.BytesIO(content), remote_path)

    async def upload(
        self,
        content: bytes,
        remote_directory: str | None,
        remote_file_name: str,
    ) -> str:
        """Upload content and return the remote path written.

        Args:
            content: File content.
            remote_directory: Target directory; the settings default applies when blank.
            remote_file_name: Target file name.

        Raises:
            ConfigurationError: No SFTP host is configured.
            DeliveryError: Connection, authentication or transfer failed.
        """
        if not self._settings.is_configured:
            msg = "SFTP host is not configured."
            raise ConfigurationError(msg)

        directory = normalize_remote_path(
            remote_directory if remote_directory and remote_directory.strip()
            else self._settings.remote_directory
        )
        remote_path = join_remote_path(directory, remote_file_name)

        logger.info(
            "Uploading report via SFTP",
            extra={
                "host": self._settings.host,
                "port": self._settings.port,
                "remote_path": remote_path,
                "size_bytes": len(content),
            },
        )

        cancelled = threading.Event()
        try:
            await asyncio.to_thread(self._upload_sync, content, directory, remote_path, cancelled)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        except (paramiko.SSHException, OSError) as exc:
            msg = f"SFTP upload to {remote_path} failed: {exc}"
            raise DeliveryError(msg, channel="sftp") from exc

        return remote_path


__all__ = [
    "SftpUploader",
    "ensure_remote_directory",
    "join_remote_path",
    "normalize_remote_path",
]
