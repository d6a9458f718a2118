"""Client for the remote report task-definition API.

The API returns a JSON array of task definitions (or an object carrying them
under ``reportTasks``) using camelCase keys. Any failure yields an empty list,
so callers fall back to locally configured tasks. Cancellation propagates.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from report_scheduler.features.reports.models import ReportTask
from report_scheduler.infra.external.base_client import BaseHTTPClient

if TYPE_CHECKING:
    import httpx

    from report_scheduler.core.settings.task_source import TaskSourceSettings

logger = logging.getLogger(__name__)

DEFAULT_REPORT_TASKS_PATH = "/api/system/options/report-tasks"
DEFAULT_API_KEY_HEADER = "X-Api-Key"


def parse_task_definitions(payload: Any) -> list[ReportTask]:
    """Map a decoded API payload onto report tasks.

    Entries without a name, or that fail validation, are dropped.
    """
    if isinstance(payload, dict):
        payload = payload.get("reportTasks") or payload.get("report_tasks") or []
    if not isinstance(payload, list):
        logger.warning(
            "Task-definition API returned an unexpected payload",
            extra={"payload_type": type(payload).__name__},
        )
        return []

    tasks: list[ReportTask] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            logger.debug("Skipping task definition without a name", extra={"index": index})
            continue
        try:
            tasks.append(ReportTask.model_validate(entry))
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid task definition",
                extra={"index": index, "task_name": name.strip(), "errors": exc.error_count()},
            )
    return tasks


class TaskSourceClient:
    """Fetches report task definitions from the options API.

    Example:
        ```python
        client = TaskSourceClient(get_task_source_settings())
        tasks = await client.fetch_report_tasks()  # [] when unavailable
        ```
    """

    def __init__(
        self,
        settings: TaskSourceSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        api_key = self._settings.api_key.get_secret_value() if self._settings.api_key else ""
        if api_key:
            header_name = self._settings.api_key_header_name.strip() or DEFAULT_API_KEY_HEADER
            headers[header_name] = api_key
        return headers

    async def fetch_report_tasks(self) -> list[ReportTask]:
        """Fetch task definitions; returns an empty list on any failure."""
        if not self._settings.is_configured:
            logger.debug("Task-definition API base URL not configured; skipping remote fetch")
            return []

        path = self._settings.report_tasks_path.strip() or DEFAULT_REPORT_TASKS_PATH

        try:
            async with BaseHTTPClient(
                base_url=self._settings.base_url.strip(),
                timeout=self._settings.timeout_seconds,
                headers=self._headers(),
                transport=self._transport,
            ) as http:
                response = await http.get(path)

                if not response.is_success:
                    logger.warning(
                        "Task-definition API request failed",
                        extra={"status_code": response.status_code, "body": response.text},
                    )
                    return []

                payload = response.json()
        except Exception:
            logger.exception("Failed to fetch report tasks from task-definition API")
            return []

        tasks = parse_task_definitions(payload)
        if not tasks:
            logger.info("Task-definition API returned no report tasks")
        else:
            logger.info("Fetched report tasks from API", extra={"task_count": len(tasks)})
        return tasks


__all__ = ["TaskSourceClient", "parse_task_definitions"]
