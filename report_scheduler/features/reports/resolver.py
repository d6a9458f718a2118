"""Report task resolution.

Tasks come from the remote task-definition source when it answers with at least
one task; otherwise the locally configured list is used in its entirety. The
choice is made once per call and never mixes the two sets.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Protocol

from report_scheduler.core.exceptions import TaskNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from report_scheduler.features.reports.models import ReportTask

logger = logging.getLogger(__name__)


class RemoteTaskSource(Protocol):
    """Anything that can list report tasks remotely."""

    async def fetch_report_tasks(self) -> list[ReportTask]: ...


class TaskOrigin(StrEnum):
    """Which source a resolved task set came from."""

    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True)
class ResolvedTasks:
    """A resolved task set and where it came from."""

    tasks: list[ReportTask]
    origin: TaskOrigin

    def find(self, task_name: str) -> ReportTask | None:
        key = task_name.strip().casefold()
        return next((task for task in self.tasks if task.key == key), None)


def deduplicate(tasks: Iterable[ReportTask], origin: TaskOrigin) -> list[ReportTask]:
    """Keep the first task of each case-insensitive name."""
    seen: set[str] = set()
    unique: list[ReportTask] = []
    for task in tasks:
        if task.key in seen:
            logger.warning(
                "Duplicate report task name ignored",
                extra={"task_name": task.name, "origin": origin.value},
            )
            continue
        seen.add(task.key)
        unique.append(task)
    return unique


class TaskResolver:
    """Resolves report tasks from the remote source with local fallback.

    Example:
        ```python
        resolver = TaskResolver(TaskSourceClient(settings), local_tasks)
        task = await resolver.resolve("daily")  # case-insensitive
        ```
    """

    def __init__(
        self,
        remote: RemoteTaskSource | None,
        local_tasks: Sequence[ReportTask],
    ) -> None:
        self._remote = remote
        self._local_tasks = list(local_tasks)

    async def _fetch_remote(self) -> list[ReportTask]:
        if self._remote is None:
            return []
        try:
            return list(await self._remote.fetch_report_tasks())
        except Exception:
            logger.exception("Remote task source failed; falling back to local tasks")
            return []

    async def resolve_all(self) -> ResolvedTasks:
        """Resolve the full task set.

        Local tasks are handed out as deep copies so callers may mutate them freely.
        """
        remote_tasks = await self._fetch_remote()
        if remote_tasks:
            logger.debug("Using remote report tasks", extra={"task_count": len(remote_tasks)})
            return ResolvedTasks(deduplicate(remote_tasks, TaskOrigin.REMOTE), TaskOrigin.REMOTE)

        local_copies = [task.model_copy(deep=True) for task in self._local_tasks]
        logger.debug("Using locally configured report tasks", extra={"task_count": len(local_copies)})
        return ResolvedTasks(deduplicate(local_copies, TaskOrigin.LOCAL), TaskOrigin.LOCAL)

    async def resolve(self, task_name: str) -> ReportTask:
        """Resolve one task by case-insensitive name.

        Raises:
            TaskNotFoundError: No task of that name exists in the resolved set.
        """
        resolved = await self.resolve_all()
        task = resolved.find(task_name)
        if task is None:
            raise TaskNotFoundError(task_name)
        return task


__all__ = [
    "RemoteTaskSource",
    "ResolvedTasks",
    "TaskOrigin",
    "TaskResolver",
    "deduplicate",
]
