"""Unit tests for the scheduled jobs."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.core.jobs.tasks import recover_migrations_job, run_capacity_pass_job
from app.core.jobs.worker import WorkerSettings
from app.modules.cells.schemas import CapacityReport, RegionSweepResult, RegionSweepStatus
from app.modules.tenants.schemas import MigrationRecoveryReport


@pytest.fixture
def ctx():
    session = AsyncMock()

    @asynccontextmanager
    async def session_factory():
        yield session

    return {"db_session_factory": session_factory}


class TestCapacityPassJob:
    async def test_summarizes_report(self, ctx):
        report = CapacityReport(
            timestamp=datetime.now(UTC),
            total_cells=4,
            total_tenants=120,
            shared_cells_at_capacity=2,
            new_cells_provisioned=1,
            region_results=[
                RegionSweepResult(region="eastus", status=RegionSweepStatus.PROVISIONED),
                RegionSweepResult(region="westus", status=RegionSweepStatus.FAILED),
            ],
        )

        with patch(
            "app.core.jobs.tasks.capacity.CapacityMonitor.run_capacity_pass",
            new_callable=AsyncMock,
            return_value=report,
        ) as run:
            result = await run_capacity_pass_job(ctx)

        run.assert_awaited_once()
        assert result == {
            "total_cells": 4,
            "total_tenants": 120,
            "shared_cells_at_capacity": 2,
            "new_cells_provisioned": 1,
            "skipped_regions": ["westus"],
            "migration_candidates": 0,
        }


class TestRecoverMigrationsJob:
    async def test_counts_outcomes(self, ctx):
        report = MigrationRecoveryReport(completed=[uuid4(), uuid4()], pending=[uuid4()])

        with patch(
            "app.core.jobs.tasks.migrations.MigrationOrchestrator.recover_migrations",
            new_callable=AsyncMock,
            return_value=report,
        ):
            result = await recover_migrations_job(ctx)

        assert result == {"completed": 2, "rolled_back": 0, "pending": 1, "failed": 0}


class TestWorkerSettings:
    def test_registers_jobs(self):
        assert set(WorkerSettings.functions) == {run_capacity_pass_job, recover_migrations_job}
        assert len(WorkerSettings.cron_jobs) == 2
