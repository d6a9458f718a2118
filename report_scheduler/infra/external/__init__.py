"""External service clients.

HTTP clients for the report server and the task-definition API. All share
BaseHTTPClient for pooling, timeouts and request logging.
"""

from report_scheduler.infra.external.base_client import BaseHTTPClient
from report_scheduler.infra.external.task_source import TaskSourceClient, parse_task_definitions

__all__ = [
    "BaseHTTPClient",
    "TaskSourceClient",
    "parse_task_definitions",
]
