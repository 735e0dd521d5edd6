"""Tenant API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from app.modules.tenants.dependencies import Orchestrator, TenantSvc
from app.modules.tenants.schemas import (
    MigrationRecoveryReport,
    MigrationRequest,
    MigrationResult,
    TenantCellResponse,
    TenantCreate,
    TenantResponse,
)


router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.post(
    "",
    response_model=TenantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant",
    description="Register a tenant and place it on a cell for its tier and region.",
)
async def create_tenant(data: TenantCreate, service: TenantSvc) -> TenantResponse:
    """Create a tenant."""
    tenant = await service.create_tenant(data)
    return TenantResponse.model_validate(tenant)


@router.get(
    "/by-subdomain/{subdomain}/cell",
    response_model=TenantCellResponse,
    summary="Resolve tenant cell",
    description="Routing lookup: the cell and backend pool serving a subdomain.",
)
async def get_tenant_cell(subdomain: str, service: TenantSvc) -> TenantCellResponse:
    """Resolve the cell for a subdomain."""
    return await service.get_tenant_cell(subdomain)


@router.post(
    "/migrations/recover",
    response_model=MigrationRecoveryReport,
    summary="Recover migrations",
    description="Finish or roll back migrations that were interrupted.",
)
async def recover_migrations(orchestrator: Orchestrator) -> MigrationRecoveryReport:
    """Run the migration recovery sweep now."""
    return await orchestrator.recover_migrations()


@router.get(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Get tenant",
)
async def get_tenant(tenant_id: UUID, service: TenantSvc) -> TenantResponse:
    """Get a tenant by ID."""
    tenant = await service.get_tenant(tenant_id)
    return TenantResponse.model_validate(tenant)


@router.post(
    "/{tenant_id}/migrate",
    response_model=MigrationResult,
    summary="Migrate tenant",
    description="Move a tenant to a new tier and a cell that satisfies it.",
)
async def migrate_tenant(
    tenant_id: UUID,
    data: MigrationRequest,
    orchestrator: Orchestrator,
) -> MigrationResult:
    """Migrate a tenant."""
    return await orchestrator.migrate_tenant(
        tenant_id,
        data.target_tier,
        required_compliance=data.required_compliance,
        reason=data.reason,
    )
