"""Base HTTP client for external service integrations.

Provides a base class for the report server and task-definition API clients with:
- Connection pooling
- Request/response logging
- Timeout configuration
- Pluggable authentication and transport

Requests are sent exactly once; callers decide what a failed response means.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class BaseHTTPClient:
    """Base HTTP client for external service integrations.

    Example:
        ```python
        async with BaseHTTPClient("https://reports.example.com/ReportServer/", timeout=120) as http:
            response = await http.post("ReportExecution2005.asmx", content=payload)
        ```
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            base_url: Base URL for the service.
            timeout: Request timeout in seconds.
            headers: Default headers to include in all requests.
            auth: Authentication applied to every request.
            transport: Custom transport (e.g. ``httpx.MockTransport`` in tests).
        """
        self.base_url = base_url
        self.timeout = timeout
        self.default_headers = headers or {}

        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers=self.default_headers,
            auth=auth,
            transport=transport,
            follow_redirects=True,
            limits=httpx.Limits(
                max_keepalive_connections=20,
                max_connections=100,
            ),
        )

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        await self.client.aclose()

    async def __aenter__(self) -> BaseHTTPClient:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager and close client."""
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and log its outcome.

        Returns:
            The response, whatever its status code.

        Raises:
            httpx.HTTPError: On network errors and timeouts.
        """
        logger.debug(
            f"{method} request to {self.base_url}{path}",
            extra={"method": method, "path": path},
        )

        response = await self.client.request(method, path, **kwargs)

        logger.debug(
            f"{method} response from {self.base_url}{path}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": response.elapsed.total_seconds() * 1000,
            },
        )
        return response

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make GET request."""
        return await self.request("GET", path, params=params, headers=headers, **kwargs)

    async def post(
        self,
        path: str,
        content: bytes | str | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make POST request with a raw body."""
        return await self.request("POST", path, content=content, headers=headers, **kwargs)


__all__ = ["BaseHTTPClient"]
