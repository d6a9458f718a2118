"""Unit tests for APScheduler job registration."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from report_scheduler.core.exceptions import ProtocolFaultError, TransportError
from report_scheduler.core.settings import SchedulerSettings
from report_scheduler.features.reports.models import ReportTask
from report_scheduler.infra.tasks import (
    create_scheduler,
    get_job_status,
    register_report_jobs,
    run_report_job,
    start_scheduler,
    stop_scheduler,
)


@pytest.fixture
def scheduler():
    return create_scheduler(SchedulerSettings(max_instances=3, misfire_grace_time=30))


@pytest.mark.unit
class TestCreateScheduler:
    def test_job_defaults(self, scheduler):
        assert scheduler._job_defaults["max_instances"] == 3
        assert scheduler._job_defaults["misfire_grace_time"] == 30
        assert scheduler._job_defaults["coalesce"] is True
        assert str(scheduler.timezone) == "UTC"


@pytest.mark.unit
class TestRegisterReportJobs:
    def test_registers_one_job_per_task(self, scheduler):
        run = AsyncMock()
        tasks = [
            ReportTask(name="Daily", cron_expression="0 0 6 * * ?"),
            ReportTask(name="Weekday", cron_expression="30 7 * * 1-5"),
        ]

        registered = register_report_jobs(scheduler, tasks, run)

        assert registered == ["Daily", "Weekday"]
        job = scheduler.get_job("Daily")
        assert job.name == "Report: Daily"
        assert job.args == (run, "Daily")

    def test_invalid_cron_is_skipped(self, scheduler, caplog):
        tasks = [
            ReportTask(name="Broken", cron_expression="0 0 6 L * ?"),
            ReportTask(name="Daily"),
        ]

        registered = register_report_jobs(scheduler, tasks, AsyncMock())

        assert registered == ["Daily"]
        assert scheduler.get_job("Broken") is None
        assert "invalid cron expression" in caplog.text

    def test_job_status_before_start(self, scheduler):
        register_report_jobs(scheduler, [ReportTask(name="Daily")], AsyncMock())

        status = get_job_status(scheduler)

        assert status[0]["id"] == "Daily"
        assert status[0]["next_run_time"] is None
        assert "cron" in status[0]["trigger"]


@pytest.mark.unit
class TestRunReportJob:
    async def test_passes_task_name(self):
        run = AsyncMock()

        await run_report_job(run, "Daily")

        run.assert_awaited_once_with("Daily")

    async def test_domain_failures_propagate(self):
        run = AsyncMock(side_effect=ProtocolFaultError("Report not found"))

        with pytest.raises(ProtocolFaultError, match="Report not found"):
            await run_report_job(run, "Daily")

    async def test_transport_failures_propagate(self):
        run = AsyncMock(side_effect=TransportError(500, "boom"))

        with pytest.raises(TransportError):
            await run_report_job(run, "Daily")

    async def test_programming_errors_propagate(self):
        run = AsyncMock(side_effect=KeyError("boom"))

        with pytest.raises(KeyError):
            await run_report_job(run, "Daily")


@pytest.mark.unit
async def test_start_and_stop(scheduler):
    register_report_jobs(scheduler, [ReportTask(name="Daily")], AsyncMock())

    await start_scheduler(scheduler)
    try:
        assert scheduler.running
        assert get_job_status(scheduler)[0]["next_run_time"] is not None
    finally:
        await stop_scheduler(scheduler, wait=False)
        await asyncio.sleep(0)

    assert not scheduler.running
