"""Test helpers: SOAP response builders and HTTP fakes."""

from __future__ import annotations

import base64
import json
from collections.abc import Callable

import httpx

from report_scheduler.features.reports.soap import EXECUTION_NAMESPACE, SOAP11_NAMESPACE


def soap_envelope(inner: str, namespace: str = SOAP11_NAMESPACE) -> bytes:
    """Wrap a response body fragment in a SOAP envelope."""
    return (
        f'<?xml version="1.0" encoding="utf-8"?>'
        f'<soap:Envelope xmlns:soap="{namespace}"><soap:Body>{inner}</soap:Body></soap:Envelope>'
    ).encode()


def load_report_response(execution_id: str = "exec-123") -> bytes:
    return soap_envelope(
        f'<LoadReportResponse xmlns="{EXECUTION_NAMESPACE}">'
        f"<executionInfo><ExecutionID>{execution_id}</ExecutionID></executionInfo>"
        f"</LoadReportResponse>"
    )


def set_parameters_response() -> bytes:
    return soap_envelope(
        f'<SetExecutionParametersResponse xmlns="{EXECUTION_NAMESPACE}">'
        f"<executionInfo><ExecutionID>exec-123</ExecutionID></executionInfo>"
        f"</SetExecutionParametersResponse>"
    )


def render_response(
    content: bytes = b"%PDF-1.7 test",
    *,
    extension: str | None = "pdf",
    mime_type: str | None = "application/pdf",
) -> bytes:
    encoded = base64.b64encode(content).decode()
    extra = ""
    if extension is not None:
        extra += f"<Extension>{extension}</Extension>"
    if mime_type is not None:
        extra += f"<MimeType>{mime_type}</MimeType>"
    return soap_envelope(
        f'<RenderResponse xmlns="{EXECUTION_NAMESPACE}"><Result>{encoded}</Result>{extra}'
        f"</RenderResponse>"
    )


def soap11_fault(reason: str, detail: str = "") -> bytes:
    return soap_envelope(
        f"<soap:Fault><faultcode>soap:Server</faultcode><faultstring>{reason}</faultstring>"
        f"<detail>{detail}</detail></soap:Fault>"
    )


def operation_of(request: httpx.Request) -> str:
    """Operation name from the SOAPAction header or the SOAP 1.2 content type."""
    action = request.headers.get("SOAPAction")
    if action is None:
        content_type = request.headers.get("Content-Type", "")
        action = content_type.split('action="', 1)[1].rstrip('"')
    return action.rsplit("/", 1)[-1]


def report_server_handler(request: httpx.Request) -> httpx.Response:
    """Answer LoadReport, SetExecutionParameters and Render successfully."""
    responses = {
        "LoadReport": load_report_response,
        "SetExecutionParameters": set_parameters_response,
        "Render": render_response,
    }
    return httpx.Response(200, content=responses[operation_of(request)]())


def json_response(payload: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode(),
        headers={"Content-Type": "application/json"},
    )


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)
