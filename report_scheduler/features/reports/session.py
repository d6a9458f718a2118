"""Report execution session against the report server.

A session walks one execution through LoadReport, SetExecutionParameters and
Render, carrying the execution identifier returned by LoadReport in the SOAP
header of every later call. The session refuses out-of-order calls.
"""

from __future__ import annotations

import base64
import binascii
from enum import StrEnum
import logging
from typing import TYPE_CHECKING

from lxml import etree

from report_scheduler.core.exceptions import ProtocolContractViolation
from report_scheduler.features.reports.formats import (
    RenderFormat,
    file_extension,
    mime_type,
    parse_format,
    to_protocol_token,
)
from report_scheduler.features.reports.models import RenderedArtifact
from report_scheduler.features.reports.soap import (
    EXECUTION_NAMESPACE,
    XSI_NAMESPACE,
    SoapClient,
    execution_element,
    execution_subelement,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from report_scheduler.features.reports.models import ReportTask

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    """Lifecycle of a report execution session."""

    NEW = "new"
    LOADED = "loaded"
    PARAMETERS_SET = "parameters_set"
    RENDERED = "rendered"


class SessionStateError(RuntimeError):
    """Raised when session operations are called out of order."""


def _first_text(document: etree._Element, tag: str) -> str | None:
    element = document.find(f".//{{{EXECUTION_NAMESPACE}}}{tag}")
    if element is None or element.text is None:
        return None
    text = element.text.strip()
    return text or None


class ReportExecutionSession:
    """One Load -> SetParameters -> Render exchange.

    Example:
        ```python
        session = ReportExecutionSession(soap)
        await session.load("/Finance/Daily")
        await session.set_parameters({"Region": "EU"})
        artifact = await session.render(RenderFormat.PDF)
        ```
    """

    def __init__(self, soap: SoapClient, *, parameter_language: str = "") -> None:
        self._soap = soap
        self._parameter_language = parameter_language
        self._state = SessionState.NEW
        self._execution_id: str | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def execution_id(self) -> str | None:
        return self._execution_id

    def _require(self, operation: str, *allowed: SessionState) -> str:
        if self._state not in allowed or self._execution_id is None:
            msg = f"Cannot call {operation} in session state '{self._state}'"
            raise SessionStateError(msg)
        return self._execution_id

    async def load(self, report_path: str) -> str:
        """Load a report and open a server-side execution.

        Args:
            report_path: Catalog path of the report.

        Returns:
            The execution identifier issued by the server.

        Raises:
            ProtocolContractViolation: The response carried no execution identifier.
        """
        if self._state is not SessionState.NEW:
            msg = f"Cannot call LoadReport in session state '{self._state}'"
            raise SessionStateError(msg)

        logger.info("Loading report", extra={"report_path": report_path})

        body = execution_element("LoadReport")
        execution_subelement(body, "Report", report_path)
        history = execution_subelement(body, "HistoryID")
        history.set(etree.QName(XSI_NAMESPACE, "nil"), "true")

        document = await self._soap.call("LoadReport", body)
        execution_id = _first_text(document, "ExecutionID")
        if execution_id is None:
            msg = "Report server did not return an execution identifier."
            raise ProtocolContractViolation(msg, operation="LoadReport")

        self._execution_id = execution_id
        self._state = SessionState.LOADED
        logger.debug("Execution opened", extra={"execution_id": execution_id})
        return execution_id

    async def set_parameters(self, parameters: Mapping[str, str]) -> None:
        """Send parameter values for the loaded execution.

        An empty mapping is a no-op; no request is sent.
        """
        execution_id = self._require("SetExecutionParameters", SessionState.LOADED)
        if not parameters:
            return

        logger.info(
            "Setting report parameters",
            extra={"execution_id": execution_id, "parameter_count": len(parameters)},
        )

        body = execution_element("SetExecutionParameters")
        container = execution_subelement(body, "Parameters")
        for name, value in parameters.items():
            parameter = execution_subelement(container, "ParameterValue")
            execution_subelement(parameter, "Name", name)
            execution_subelement(parameter, "Value", value)
        execution_subelement(body, "ParameterLanguage", self._parameter_language)

        await self._soap.call("SetExecutionParameters", body, execution_id=execution_id)
        self._state = SessionState.PARAMETERS_SET

    async def render(self, render_format: RenderFormat) -> RenderedArtifact:
        """Render the execution and decode the result.

        The server's extension and MIME type are preferred when present;
        otherwise the format registry supplies them.

        Raises:
            ProtocolContractViolation: The response had no content or invalid base64.
        """
        execution_id = self._require(
            "Render", SessionState.LOADED, SessionState.PARAMETERS_SET
        )
        token = to_protocol_token(render_format)
        logger.info("Rendering report", extra={"execution_id": execution_id, "format": token})

        body = execution_element("Render")
        execution_subelement(body, "Format", token)
        execution_subelement(body, "DeviceInfo")

        document = await self._soap.call("Render", body, execution_id=execution_id)

        encoded = _first_text(document, "Result")
        if encoded is None:
            msg = "Report server did not return any report content."
            raise ProtocolContractViolation(msg, operation="Render")
        try:
            content = base64.b64decode("".join(encoded.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = "Report server returned report content that is not valid base64."
            raise ProtocolContractViolation(msg, operation="Render") from exc

        extension = _first_text(document, "Extension")
        server_mime_type = _first_text(document, "MimeType")

        artifact = RenderedArtifact(
            content=content,
            render_format=render_format,
            file_extension=f".{extension.strip('.')}" if extension else file_extension(render_format),
            mime_type=server_mime_type or mime_type(render_format),
        )
        self._state = SessionState.RENDERED
        logger.debug(
            "Report rendered",
            extra={"execution_id": execution_id, "size_bytes": artifact.size},
        )
        return artifact


class ReportExecutionClient:
    """Runs a complete report execution for a task."""

    def __init__(
        self,
        soap: SoapClient,
        *,
        folder_path: str = "",
        parameter_language: str = "",
    ) -> None:
        self._soap = soap
        self._folder_path = folder_path
        self._parameter_language = parameter_language

    async def execute(self, task: ReportTask) -> RenderedArtifact:
        """Load, parameterize and render the task's report.

        Raises:
            UnsupportedFormatError: The task's format is unknown (before any request).
            ProtocolError: Any report server failure.
        """
        render_format = parse_format(task.format)

        session = ReportExecutionSession(self._soap, parameter_language=self._parameter_language)
        await session.load(task.resolve_report_path(self._folder_path))
        if task.parameters:
            await session.set_parameters(task.parameters)
        return await session.render(render_format)


__all__ = [
    "ReportExecutionClient",
    "ReportExecutionSession",
    "SessionState",
    "SessionStateError",
]
