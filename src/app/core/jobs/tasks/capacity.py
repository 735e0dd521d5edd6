"""Scheduled capacity pass.

Runs the capacity monitor across every region, provisioning shared cells
where the existing ones are close to full.
"""

from typing import Any

import structlog

from app.modules.cells.capacity import CapacityMonitor
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner, LoggingProvisioningNotifier
from app.modules.cells.repos import CellRepository
from app.modules.tenants.repos import TenantRepository


log = structlog.get_logger()


async def run_capacity_pass_job(ctx: dict[str, Any]) -> dict[str, Any]:
    """Run one capacity pass.

    Args:
        ctx: Worker context containing database session factory

    Returns:
        Summary of the pass: totals, new cells and skipped regions
    """
    session_factory = ctx["db_session_factory"]
    policy = PlacementPolicy.from_settings()

    async with session_factory() as session:
        cells = CellRepository(session)
        provisioner = CellProvisioner(cells, LoggingProvisioningNotifier(), policy)
        monitor = CapacityMonitor(cells, TenantRepository(session), provisioner, policy)
        report = await monitor.run_capacity_pass()

    log.info(
        "capacity_pass_job_complete",
        new_cells_provisioned=report.new_cells_provisioned,
        skipped_regions=report.skipped_regions,
    )

    return {
        "total_cells": report.total_cells,
        "total_tenants": report.total_tenants,
        "shared_cells_at_capacity": report.shared_cells_at_capacity,
        "new_cells_provisioned": report.new_cells_provisioned,
        "skipped_regions": report.skipped_regions,
        "migration_candidates": len(report.migration_candidates),
    }
