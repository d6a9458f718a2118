"""One triggered report run: resolve the task, execute it, route the result."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
import logging
import time
from typing import TYPE_CHECKING, Protocol
import uuid

from report_scheduler.core.exceptions import TaskNotFoundError
from report_scheduler.infra.logging.context import bound_log_context

if TYPE_CHECKING:
    from report_scheduler.features.reports.delivery import DeliveryReceipt, DeliveryRouter
    from report_scheduler.features.reports.models import RenderedArtifact, ReportTask
    from report_scheduler.features.reports.resolver import TaskResolver

logger = logging.getLogger(__name__)


class ReportExecutor(Protocol):
    async def execute(self, task: ReportTask) -> RenderedArtifact: ...


class RunState(StrEnum):
    """Stages and outcomes of a report run."""

    RESOLVE = "resolve"
    EXECUTE = "execute"
    ROUTE = "route"
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class RunResult:
    """Outcome of a run that did not raise."""

    task_name: str
    run_id: str
    state: RunState
    receipt: DeliveryReceipt | None = None
    duration_ms: float = 0.0


class ExecutionOrchestrator:
    """Drives a report run from task name to delivered artifact.

    Unknown task names end the run as SKIPPED. Every other failure is logged and
    re-raised without retry. Cancellation is logged as such and re-raised.
    """

    def __init__(
        self,
        resolver: TaskResolver,
        executor: ReportExecutor,
        router: DeliveryRouter,
    ) -> None:
        self._resolver = resolver
        self._executor = executor
        self._router = router

    async def run(self, task_name: str) -> RunResult:
        """Run the named task once."""
        run_id = uuid.uuid4().hex
        with bound_log_context(task_name=task_name, run_id=run_id):
            return await self._run(task_name, run_id)

    async def _run(self, task_name: str, run_id: str) -> RunResult:
        started = time.perf_counter()
        state = RunState.RESOLVE

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        logger.info("Report run started")
        try:
            try:
                task = await self._resolver.resolve(task_name)
            except TaskNotFoundError:
                logger.warning("Report task not found; run skipped")
                return RunResult(task_name, run_id, RunState.SKIPPED, duration_ms=elapsed_ms())

            state = RunState.EXECUTE
            artifact = await self._executor.execute(task)

            state = RunState.ROUTE
            receipt = await self._router.deliver(task, artifact)
        except asyncio.CancelledError:
            logger.warning("Report run cancelled", extra={"stage": state.value})
            raise
        except Exception:
            logger.exception(
                "Report run failed",
                extra={
                    "stage": state.value,
                    "outcome": RunState.FAILED.value,
                    "duration_ms": elapsed_ms(),
                },
            )
            raise

        duration_ms = elapsed_ms()
        logger.info(
            "Report run completed",
            extra={
                "outcome": RunState.DONE.value,
                "delivery_method": receipt.method.value,
                "file_name": receipt.file_name,
                "duration_ms": duration_ms,
            },
        )
        return RunResult(task.name, run_id, RunState.DONE, receipt, duration_ms)


__all__ = ["ExecutionOrchestrator", "ReportExecutor", "RunResult", "RunState"]
