"""FastAPI dependency providers for tenant services."""

from typing import Annotated

from fastapi import Depends

from app.modules.cells.dependencies import AssignmentEngine, Policy, Provisioner
from app.modules.cells.repos import CellRepo
from app.modules.tenants.migration import MigrationOrchestrator
from app.modules.tenants.repos import MigrationRepo, TenantRepo
from app.modules.tenants.services import TenantService


def get_tenant_service(
    tenants: TenantRepo,
    cells: CellRepo,
    engine: AssignmentEngine,
    policy: Policy,
) -> TenantService:
    return TenantService(tenants, cells, engine, policy)


def get_migration_orchestrator(
    tenants: TenantRepo,
    cells: CellRepo,
    migrations: MigrationRepo,
    provisioner: Provisioner,
    policy: Policy,
) -> MigrationOrchestrator:
    return MigrationOrchestrator(tenants, cells, migrations, provisioner, policy)


# Type aliases for dependency injection
TenantSvc = Annotated[TenantService, Depends(get_tenant_service)]
Orchestrator = Annotated[MigrationOrchestrator, Depends(get_migration_orchestrator)]
