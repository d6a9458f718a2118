"""Delivery routing for rendered reports.

Every artifact is first written to the local output directory, then shipped over
the task's delivery method (SFTP unless email is selected).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from pathlib import Path, PurePath
import re
from typing import TYPE_CHECKING, Protocol

from report_scheduler.features.reports.models import DeliveryMethod

if TYPE_CHECKING:
    from collections.abc import Callable

    from report_scheduler.features.reports.models import RenderedArtifact, ReportTask

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
FALLBACK_FILE_NAME = "report"

# Reserved path characters, control characters and whitespace.
_ILLEGAL_FILE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f\s]')


def utc_now() -> datetime:
    return datetime.now(UTC)


def sanitize_file_name(name: str | None) -> str:
    """Replace characters that are illegal in file names with underscores.

    Blank names become ``report``.
    """
    stripped = (name or "").strip()
    if not stripped:
        return FALLBACK_FILE_NAME
    return _ILLEGAL_FILE_NAME_CHARS.sub("_", stripped)


def default_file_name(task_name: str, extension: str, moment: datetime) -> str:
    """``<sanitized task name>_<yyyyMMdd_HHmmss><extension>`` in UTC."""
    timestamp = moment.astimezone(UTC).strftime(TIMESTAMP_FORMAT)
    return f"{sanitize_file_name(task_name)}_{timestamp}{extension}"


def resolve_file_name(
    override: str | None,
    task_name: str,
    extension: str,
    moment: datetime,
) -> str:
    """Pick the delivery file name.

    An explicit override is sanitized and gets ``extension`` only when it carries
    no extension of its own; otherwise the timestamped default is used.
    """
    if override is None or not override.strip():
        return default_file_name(task_name, extension, moment)
    name = sanitize_file_name(override)
    if not PurePath(name).suffix:
        name = f"{name}{extension}"
    return name


class RemoteUploader(Protocol):
    async def upload(self, content: bytes, remote_directory: str | None, remote_file_name: str) -> str: ...


class ReportSender(Protocol):
    async def send_report(
        self, task: ReportTask, artifact: RenderedArtifact, attachment_file_name: str
    ) -> None: ...


@dataclass(frozen=True)
class DeliveryReceipt:
    """What a delivery produced."""

    method: DeliveryMethod
    file_name: str
    local_path: Path
    remote_path: str | None = None


class DeliveryRouter:
    """Persists artifacts locally and dispatches them to SFTP or email.

    Example:
        ```python
        router = DeliveryRouter(Path("reports"), sftp=uploader, email=sender)
        receipt = await router.deliver(task, artifact)
        ```
    """

    def __init__(
        self,
        output_directory: Path,
        *,
        sftp: RemoteUploader,
        email: ReportSender,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._output_directory = Path(output_directory)
        self._sftp = sftp
        self._email = email
        self._clock = clock

    def _write_local(self, file_name: str, content: bytes) -> Path:
        self._output_directory.mkdir(parents=True, exist_ok=True)
        path = self._output_directory / file_name
        path.write_bytes(content)
        return path

    def resolve_delivery_name(self, task: ReportTask, artifact: RenderedArtifact, moment: datetime) -> str:
        """File name for the task's selected method, honouring its override."""
        if task.delivery.method is DeliveryMethod.EMAIL:
            override = task.delivery.email.attachment_file_name
        else:
            override = task.delivery.sftp.file_name
        return resolve_file_name(override, task.name, artifact.file_extension, moment)

    async def save_local(self, task: ReportTask, artifact: RenderedArtifact, file_name: str) -> Path:
        """Write the artifact under ``file_name`` in the output directory."""
        path = await asyncio.to_thread(self._write_local, file_name, artifact.content)
        logger.info(
            "Report saved locally",
            extra={"task_name": task.name, "local_path": str(path), "size_bytes": artifact.size},
        )
        return path

    async def deliver(self, task: ReportTask, artifact: RenderedArtifact) -> DeliveryReceipt:
        """Save the artifact locally, then ship it over the task's delivery method.

        Raises:
            ConfigurationError: The selected channel is not fully configured.
            DeliveryError: The remote transfer failed.
        """
        moment = self._clock()
        file_name = self.resolve_delivery_name(task, artifact, moment)
        local_path = await self.save_local(task, artifact, file_name)
        method = task.delivery.method

        if method is DeliveryMethod.EMAIL:
            await self._email.send_report(task, artifact, file_name)
            logger.info(
                "Report delivered via email",
                extra={"task_name": task.name, "attachment": file_name},
            )
            return DeliveryReceipt(method=method, file_name=file_name, local_path=local_path)

        remote_path = await self._sftp.upload(
            artifact.content,
            task.delivery.sftp.remote_directory,
            file_name,
        )
        logger.info(
            "Report delivered via SFTP",
            extra={"task_name": task.name, "remote_path": remote_path},
        )
        return DeliveryReceipt(
            method=DeliveryMethod.SFTP,
            file_name=file_name,
            local_path=local_path,
            remote_path=remote_path,
        )


__all__ = [
    "DeliveryReceipt",
    "DeliveryRouter",
    "RemoteUploader",
    "ReportSender",
    "default_file_name",
    "resolve_file_name",
    "sanitize_file_name",
]
