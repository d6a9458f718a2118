"""Exception hierarchy for report execution and delivery.

Every error raised by the scheduler core derives from ReportSchedulerError so the
scheduler layer can tell domain failures apart from programming errors.

Taxonomy:
    UnsupportedFormatError     unknown render format name (raised before any network call)
    ProtocolFaultError         report server answered with a SOAP fault
    ProtocolContractViolation  success response without a usable payload
    TransportError             non-success HTTP response without a fault
    ConfigurationError         missing/invalid settings or task delivery configuration
    TaskNotFoundError          task name not present in any task source
    DeliveryError              SFTP/SMTP transport failure
"""

from __future__ import annotations


class ReportSchedulerError(Exception):
    """Base exception for all report scheduler errors."""

    def __init__(self, message: str, *, task_name: str | None = None) -> None:
        self.message = message
        self.task_name = task_name
        super().__init__(message)


class UnsupportedFormatError(ReportSchedulerError, ValueError):
    """Raised when a render format name is not recognized."""

    def __init__(self, value: str | None) -> None:
        self.value = value
        super().__init__(f"Unsupported report format '{value}'.")


class ProtocolError(ReportSchedulerError):
    """Base class for report server protocol failures."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)


class ProtocolFaultError(ProtocolError):
    """Raised when the report server returns a SOAP fault."""

    def __init__(
        self,
        reason: str,
        *,
        detail: str | None = None,
        status_code: int | None = None,
        operation: str | None = None,
    ) -> None:
        self.reason = reason
        self.detail = detail
        self.status_code = status_code
        message = f"SOAP fault: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, operation=operation)


class ProtocolContractViolation(ProtocolError):
    """Raised when a successful response lacks the payload the protocol promises."""


class TransportError(ProtocolError):
    """Raised for non-success HTTP responses that carry no recognizable fault."""

    def __init__(
        self,
        status_code: int,
        body: str,
        *,
        operation: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Report server request failed with HTTP {status_code}: {body}",
            operation=operation,
        )


class ConfigurationError(ReportSchedulerError):
    """Raised when required settings or task configuration are missing."""


class TaskNotFoundError(ReportSchedulerError):
    """Raised when a task name is not present in the resolved task set."""

    def __init__(self, task_name: str) -> None:
        super().__init__(
            f"Report task '{task_name}' was not found in configuration.",
            task_name=task_name,
        )


class DeliveryError(ReportSchedulerError):
    """Raised when an SFTP upload or email send fails at the transport level."""

    def __init__(
        self,
        message: str,
        *,
        channel: str,
        task_name: str | None = None,
    ) -> None:
        self.channel = channel
        super().__init__(message, task_name=task_name)


__all__ = [
    "ConfigurationError",
    "DeliveryError",
    "ProtocolContractViolation",
    "ProtocolError",
    "ProtocolFaultError",
    "ReportSchedulerError",
    "TaskNotFoundError",
    "TransportError",
    "UnsupportedFormatError",
]
