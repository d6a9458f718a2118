"""SOAP transport for the report server execution endpoint.

Requests are framed in one of two envelope dialects:

- SOAP 1.1: ``text/xml`` body, action carried in the ``SOAPAction`` HTTP header.
- SOAP 1.2: ``application/soap+xml`` body, action carried as a content-type parameter.

Every request goes out as SOAP 1.1 first. When the server rejects it because it
does not recognize the ``SOAPAction`` header, the same request is sent once more as
SOAP 1.2. Each HTTP response is classified exactly once into a tagged outcome
(success, fault, or transport failure) based on its content.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import TYPE_CHECKING

import httpx
from lxml import etree

from report_scheduler.core.exceptions import (
    ProtocolContractViolation,
    ProtocolError,
    ProtocolFaultError,
    TransportError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from report_scheduler.infra.external.base_client import BaseHTTPClient

logger = logging.getLogger(__name__)

SOAP11_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP12_NAMESPACE = "http://www.w3.org/2003/05/soap-envelope"
EXECUTION_NAMESPACE = (
    "http://schemas.microsoft.com/sqlserver/2005/06/30/reporting/reportexecution2005"
)
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
XSD_NAMESPACE = "http://www.w3.org/2001/XMLSchema"

# Found in the body of ASMX responses that reject an unknown SOAPAction header.
SOAP11_ACTION_REJECTION_MARKER = "soapaction"

_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    huge_tree=True,
    remove_blank_text=True,
)


class SoapDialect(StrEnum):
    """Envelope dialects understood by the report server."""

    SOAP11 = "1.1"
    SOAP12 = "1.2"

    @property
    def envelope_namespace(self) -> str:
        """Namespace of the Envelope/Header/Body elements."""
        return SOAP11_NAMESPACE if self is SoapDialect.SOAP11 else SOAP12_NAMESPACE

    def request_headers(self, action: str) -> dict[str, str]:
        """HTTP headers identifying the action in this dialect."""
        if self is SoapDialect.SOAP11:
            return {
                "Content-Type": "text/xml; charset=utf-8",
                "SOAPAction": action,
            }
        return {"Content-Type": f'application/soap+xml; charset=utf-8; action="{action}"'}


def execution_element(tag: str, text: str | None = None) -> etree._Element:
    """Create an element in the report execution namespace."""
    element = etree.Element(etree.QName(EXECUTION_NAMESPACE, tag), nsmap={None: EXECUTION_NAMESPACE})
    if text is not None:
        element.text = text
    return element


def execution_subelement(
    parent: etree._Element, tag: str, text: str | None = None
) -> etree._Element:
    """Append a child element in the report execution namespace."""
    element = etree.SubElement(parent, etree.QName(EXECUTION_NAMESPACE, tag))
    if text is not None:
        element.text = text
    return element


def build_envelope(
    dialect: SoapDialect,
    body: etree._Element,
    execution_id: str | None = None,
) -> bytes:
    """Wrap an operation element in a SOAP envelope.

    Args:
        dialect: Envelope dialect to use.
        body: Operation element (copied, the caller's tree is left untouched).
        execution_id: Execution identifier for the ``ExecutionHeader``, if any.

    Returns:
        UTF-8 encoded XML document with declaration.
    """
    soap_ns = dialect.envelope_namespace
    envelope = etree.Element(
        etree.QName(soap_ns, "Envelope"),
        nsmap={"soap": soap_ns, "xsi": XSI_NAMESPACE, "xsd": XSD_NAMESPACE},
    )
    if execution_id is not None:
        header = etree.SubElement(envelope, etree.QName(soap_ns, "Header"))
        execution_header = etree.SubElement(
            header,
            etree.QName(EXECUTION_NAMESPACE, "ExecutionHeader"),
            nsmap={None: EXECUTION_NAMESPACE},
        )
        execution_subelement(execution_header, "ExecutionID", execution_id)
    soap_body = etree.SubElement(envelope, etree.QName(soap_ns, "Body"))
    soap_body.append(copy.deepcopy(body))
    return etree.tostring(envelope, xml_declaration=True, encoding="utf-8")


# =============================================================================
# Response outcomes
# =============================================================================


@dataclass(frozen=True)
class SoapSuccess:
    """A 2xx response without a fault."""

    document: etree._Element
    status_code: int


@dataclass(frozen=True)
class SoapFault:
    """A response carrying a SOAP Fault element (any status code)."""

    reason: str
    detail: str | None
    status_code: int
    body: str


@dataclass(frozen=True)
class SoapTransportFailure:
    """A non-2xx response without a recognizable fault."""

    status_code: int
    body: str


SoapOutcome = SoapSuccess | SoapFault | SoapTransportFailure


def _normalize_text(parts: list[str]) -> str:
    return "; ".join(" ".join(part.split()) for part in parts if part and part.strip())


def _local_children(element: etree._Element, name: str) -> list[etree._Element]:
    return [
        child
        for child in element
        if isinstance(child.tag, str) and etree.QName(child).localname.lower() == name.lower()
    ]


def _parse_fault(fault: etree._Element, status_code: int, body: str) -> SoapFault:
    # SOAP 1.1 uses faultstring/detail, SOAP 1.2 uses Reason/Text and Detail.
    reason_parts: list[str] = []
    for faultstring in _local_children(fault, "faultstring"):
        reason_parts.append(faultstring.text or "")
    for reason in _local_children(fault, "Reason"):
        reason_parts.extend(text.text or "" for text in _local_children(reason, "Text"))

    detail_parts: list[str] = []
    for detail in _local_children(fault, "detail"):
        detail_parts.extend(detail.itertext())

    reason_text = _normalize_text(reason_parts) or "Unknown SOAP fault"
    detail_text = _normalize_text(detail_parts) or None
    return SoapFault(reason=reason_text, detail=detail_text, status_code=status_code, body=body)


def find_fault(document: etree._Element) -> etree._Element | None:
    """Return the Fault element under either envelope namespace, if present."""
    for namespace in (SOAP11_NAMESPACE, SOAP12_NAMESPACE):
        fault = document.find(f".//{{{namespace}}}Fault")
        if fault is not None:
            return fault
    return None


def classify_response(status_code: int, content: bytes) -> SoapOutcome:
    """Classify an HTTP response from the execution endpoint.

    A Fault element wins regardless of status code. Otherwise a 2xx status is
    success and anything else a transport failure.

    Raises:
        ProtocolContractViolation: If a 2xx response body is not XML.
    """
    body = content.decode("utf-8", errors="replace")
    document: etree._Element | None = None
    try:
        document = etree.fromstring(content, parser=_PARSER) if content.strip() else None
    except etree.XMLSyntaxError:
        document = None

    if document is not None:
        fault = find_fault(document)
        if fault is not None:
            return _parse_fault(fault, status_code, body)

    if 200 <= status_code < 300:
        if document is None:
            msg = f"Report server returned HTTP {status_code} without a SOAP document."
            raise ProtocolContractViolation(msg)
        return SoapSuccess(document=document, status_code=status_code)

    return SoapTransportFailure(status_code=status_code, body=body)


def is_action_rejection(outcome: SoapOutcome, dialect: SoapDialect) -> bool:
    """Whether a failed outcome means the server did not recognize the dialect's action."""
    if dialect is not SoapDialect.SOAP11 or isinstance(outcome, SoapSuccess):
        return False
    return SOAP11_ACTION_REJECTION_MARKER in outcome.body.lower()


# =============================================================================
# Client
# =============================================================================


class SoapClient:
    """Sends report execution operations with one-shot dialect fallback.

    Example:
        ```python
        async with BaseHTTPClient("https://reports.example.com/ReportServer/") as http:
            soap = SoapClient(http, "/ReportExecution2005.asmx")
            document = await soap.call("LoadReport", body)
        ```
    """

    def __init__(
        self,
        http_client: BaseHTTPClient,
        endpoint: str,
        *,
        primary_dialect: SoapDialect = SoapDialect.SOAP11,
        fallback_dialect: SoapDialect | None = SoapDialect.SOAP12,
        extra_headers: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the SOAP client.

        Args:
            http_client: HTTP client configured with base URL, auth and timeout.
            endpoint: Execution endpoint path relative to the client's base URL.
            primary_dialect: Dialect tried first for every request.
            fallback_dialect: Dialect tried once after an action rejection, or None.
            extra_headers: Headers added to every request.
        """
        self._http = http_client
        self._endpoint = endpoint
        self._primary = primary_dialect
        self._fallback = fallback_dialect if fallback_dialect != primary_dialect else None
        self._extra_headers = dict(extra_headers or {})

    @staticmethod
    def action_for(operation: str) -> str:
        """Return the action URI of an operation."""
        return f"{EXECUTION_NAMESPACE}/{operation}"

    async def _attempt(
        self,
        dialect: SoapDialect,
        operation: str,
        body: etree._Element,
        execution_id: str | None,
    ) -> SoapOutcome:
        payload = build_envelope(dialect, body, execution_id)
        headers = {**self._extra_headers, **dialect.request_headers(self.action_for(operation))}

        logger.debug(
            "Sending report server request",
            extra={"operation": operation, "dialect": dialect.value, "execution_id": execution_id},
        )
        try:
            response = await self._http.post(self._endpoint, content=payload, headers=headers)
        except httpx.HTTPError as exc:
            msg = f"Report server request '{operation}' failed: {exc}"
            raise ProtocolError(msg, operation=operation) from exc

        logger.debug(
            "Report server response received",
            extra={
                "operation": operation,
                "dialect": dialect.value,
                "status_code": response.status_code,
            },
        )
        return classify_response(response.status_code, response.content)

    async def call(
        self,
        operation: str,
        body: etree._Element,
        *,
        execution_id: str | None = None,
    ) -> etree._Element:
        """Send an operation and return the response document.

        Args:
            operation: Operation name (e.g. ``LoadReport``).
            body: Operation element placed inside the SOAP Body.
            execution_id: Execution identifier sent in the ``ExecutionHeader``.

        Returns:
            Parsed response document root.

        Raises:
            ProtocolFaultError: The server returned a SOAP fault.
            TransportError: The server returned a non-2xx status without a fault.
            ProtocolError: The HTTP exchange itself failed.
        """
        outcome = await self._attempt(self._primary, operation, body, execution_id)

        if self._fallback is not None and is_action_rejection(outcome, self._primary):
            logger.warning(
                "Report server rejected the SOAP action header; retrying with alternate dialect",
                extra={
                    "operation": operation,
                    "from_dialect": self._primary.value,
                    "to_dialect": self._fallback.value,
                },
            )
            outcome = await self._attempt(self._fallback, operation, body, execution_id)

        match outcome:
            case SoapSuccess(document=document):
                return document
            case SoapFault(reason=reason, detail=detail, status_code=status_code):
                raise ProtocolFaultError(
                    reason,
                    detail=detail,
                    status_code=status_code,
                    operation=operation,
                )
            case SoapTransportFailure(status_code=status_code, body=text):
                raise TransportError(status_code, text, operation=operation)

        msg = f"Unhandled SOAP outcome {outcome!r}"
        raise RuntimeError(msg)


__all__ = [
    "EXECUTION_NAMESPACE",
    "SOAP11_NAMESPACE",
    "SOAP12_NAMESPACE",
    "SoapClient",
    "SoapDialect",
    "SoapFault",
    "SoapOutcome",
    "SoapSuccess",
    "SoapTransportFailure",
    "XSI_NAMESPACE",
    "build_envelope",
    "classify_response",
    "execution_element",
    "execution_subelement",
    "find_fault",
    "is_action_rejection",
]
