"""Tenant service for business logic."""

import asyncio
from uuid import UUID, uuid4

import structlog

from app.core.errors import AppException, BadRequestError, ConflictError, NotFoundError
from app.core.utils.cancellation import raise_if_cancelled
from app.core.utils.text import generate_subdomain
from app.modules.cells.assignment import CellAssignmentEngine
from app.modules.cells.counters import adjust_tenant_count
from app.modules.cells.interfaces import CellStore
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.schemas import CellAssignmentResult, PlacementRequest
from app.modules.tenants.interfaces import TenantStore
from app.modules.tenants.models import TenantStatus
from app.modules.tenants.schemas import TenantCellResponse, TenantCreate, TenantRecord


log = structlog.get_logger()


class TenantService:
    """Service for tenant registration and lookups.

    Registration places the tenant through the assignment engine before the
    tenant record is written, so a stored Active tenant always has a cell.
    """

    def __init__(
        self,
        tenants: TenantStore,
        cells: CellStore,
        engine: CellAssignmentEngine,
        policy: PlacementPolicy,
    ) -> None:
        self.tenants = tenants
        self.cells = cells
        self.engine = engine
        self.policy = policy

    async def create_tenant(
        self,
        data: TenantCreate,
        cancel: asyncio.Event | None = None,
    ) -> TenantRecord:
        """Register a tenant and place it on a cell.

        Args:
            data: Tenant registration data
            cancel: Optional caller cancellation signal

        Returns:
            The stored Active tenant

        Raises:
            ConflictError: If the subdomain is already registered
            NoCellsAvailableError: If the region has no Active cells
            NoCapacityError: If no cell can take the tenant
        """
        subdomain = data.subdomain or generate_subdomain(data.organization_name)
        if not subdomain:
            raise BadRequestError(
                "Could not derive a subdomain from the organization name",
                error_code="invalid_subdomain",
                details={"organization_name": data.organization_name},
            )

        existing = await self.tenants.get_by_subdomain(subdomain)
        if existing:
            raise ConflictError(
                "Subdomain already registered",
                error_code="subdomain_exists",
                details={"subdomain": subdomain},
            )

        tenant_id = uuid4()
        region = data.region or self.policy.default_region
        assignment = await self.engine.assign_cell(
            PlacementRequest(
                tier=data.tier,
                region=region,
                required_compliance=data.required_compliance,
                tenant_id=tenant_id,
            ),
            cancel=cancel,
        )

        record = TenantRecord(
            id=tenant_id,
            subdomain=subdomain,
            organization_name=data.organization_name,
            contact_email=data.contact_email,
            tier=data.tier,
            region=region,
            required_compliance=data.required_compliance,
            status=TenantStatus.ACTIVE,
            cell_id=assignment.cell_id,
            cell_name=assignment.cell_name,
            cell_backend_pool=assignment.cell_backend_pool,
        )
        try:
            raise_if_cancelled(cancel, "create_tenant")
            tenant = await self.tenants.create(record)
        except AppException:
            await self._release_claim(assignment)
            raise

        log.info(
            "tenant_created",
            tenant_id=str(tenant.id),
            subdomain=tenant.subdomain,
            tenant_tier=tenant.tier,
            cell_name=tenant.cell_name,
            provisioned_new_cell=assignment.provisioned_new_cell,
        )
        return tenant

    async def _release_claim(self, assignment: CellAssignmentResult) -> None:
        """Give back the slot claimed for a tenant that was never stored."""
        if assignment.cell_id is None:
            return
        try:
            cell = await self.cells.get(assignment.cell_id)
            if cell is not None:
                await adjust_tenant_count(
                    self.cells,
                    cell,
                    -1,
                    max_attempts=self.policy.counter_update_max_attempts,
                )
        except AppException as exc:
            log.error(
                "tenant_slot_release_failed",
                cell_name=assignment.cell_name,
                error=exc.message,
            )

    async def get_tenant(self, tenant_id: UUID) -> TenantRecord:
        """Get a tenant by ID.

        Raises:
            NotFoundError: If tenant not found
        """
        tenant = await self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=str(tenant_id),
            )
        return tenant

    async def get_tenant_cell(self, subdomain: str) -> TenantCellResponse:
        """Resolve the cell serving a subdomain.

        Raises:
            NotFoundError: If no tenant owns the subdomain
        """
        tenant = await self.tenants.get_by_subdomain(subdomain)
        if not tenant:
            raise NotFoundError(
                "Tenant not found",
                resource="tenant",
                resource_id=subdomain,
            )
        return TenantCellResponse(
            subdomain=tenant.subdomain,
            tenant_id=tenant.id,
            cell_name=tenant.cell_name,
            cell_backend_pool=tenant.cell_backend_pool,
            region=tenant.region,
            status=tenant.status,
        )
