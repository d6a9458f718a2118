"""SFTP delivery for rendered reports (paramiko)."""

from report_scheduler.infra.sftp.client import (
    SftpUploader,
    ensure_remote_directory,
    join_remote_path,
    normalize_remote_path,
)

__all__ = [
    "SftpUploader",
    "ensure_remote_directory",
    "join_remote_path",
    "normalize_remote_path",
]
