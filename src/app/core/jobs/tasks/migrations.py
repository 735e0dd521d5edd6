"""Recovery sweep for interrupted tenant migrations."""

from typing import Any

import structlog

from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner, LoggingProvisioningNotifier
from app.modules.cells.repos import CellRepository
from app.modules.tenants.migration import MigrationOrchestrator
from app.modules.tenants.repos import MigrationRepository, TenantRepository


log = structlog.get_logger()


async def recover_migrations_job(ctx: dict[str, Any]) -> dict[str, int]:
    """Finish or roll back migrations left part way through.

    Args:
        ctx: Worker context containing database session factory

    Returns:
        Count of intents per recovery outcome
    """
    session_factory = ctx["db_session_factory"]
    policy = PlacementPolicy.from_settings()

    async with session_factory() as session:
        cells = CellRepository(session)
        orchestrator = MigrationOrchestrator(
            TenantRepository(session),
            cells,
            MigrationRepository(session),
            CellProvisioner(cells, LoggingProvisioningNotifier(), policy),
            policy,
        )
        report = await orchestrator.recover_migrations()

    result = {
        "completed": len(report.completed),
        "rolled_back": len(report.rolled_back),
        "pending": len(report.pending),
        "failed": len(report.failed),
    }
    log.info("recover_migrations_job_complete", **result)
    return result
