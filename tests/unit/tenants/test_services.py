"""Unit tests for TenantService."""

from uuid import uuid4

import pytest

from app.core.errors import (
    BadRequestError,
    ConflictError,
    NoCellsAvailableError,
    NotFoundError,
    StorageError,
)
from app.modules.cells.models import CellType
from app.modules.tenants.models import TenantStatus, TenantTier
from app.modules.tenants.schemas import TenantCreate
from tests.factories import make_cell, make_tenant


class TestCreateTenant:
    """Tests for TenantService.create_tenant."""

    async def test_places_tenant_on_shared_cell(self, tenant_service, cell_store, tenant_store):
        """A new tenant is stored Active and points at its cell."""
        cell = cell_store.seed(make_cell(current_tenant_count=3))

        tenant = await tenant_service.create_tenant(
            TenantCreate(organization_name="Acme Corp", contact_email="ops@acme.io")
        )

        assert tenant.subdomain == "acme-corp"
        assert tenant.status == TenantStatus.ACTIVE
        assert tenant.tier == TenantTier.SHARED
        assert tenant.region == "eastus"
        assert tenant.cell_id == cell.id
        assert tenant.cell_backend_pool == cell.backend_pool
        assert tenant_store.tenants[tenant.id] == tenant
        assert cell_store.cells[cell.id].current_tenant_count == 4

    async def test_enterprise_tenant_gets_dedicated_cell(self, tenant_service, cell_store):
        cell_store.seed(make_cell())

        tenant = await tenant_service.create_tenant(
            TenantCreate(
                organization_name="Globex",
                tier=TenantTier.ENTERPRISE,
                required_compliance=["SOC2"],
            )
        )

        cell = cell_store.cells[tenant.cell_id]
        assert cell.cell_type == CellType.DEDICATED
        assert cell.compliance_features == ["SOC2"]

    async def test_explicit_subdomain_and_region(self, tenant_service, cell_store):
        cell = cell_store.seed(make_cell(region="westeurope"))

        tenant = await tenant_service.create_tenant(
            TenantCreate(organization_name="Initech", subdomain="initech-eu", region="westeurope")
        )

        assert tenant.subdomain == "initech-eu"
        assert tenant.cell_id == cell.id

    async def test_duplicate_subdomain(self, tenant_service, cell_store, tenant_store):
        """An existing subdomain is a conflict and claims nothing."""
        cell = cell_store.seed(make_cell())
        tenant_store.seed(make_tenant(cell, subdomain="acme"))

        with pytest.raises(ConflictError) as exc_info:
            await tenant_service.create_tenant(TenantCreate(organization_name="Acme"))

        assert exc_info.value.error_code == "subdomain_exists"
        assert cell_store.cells[cell.id].current_tenant_count == 0

    async def test_underivable_subdomain(self, tenant_service):
        with pytest.raises(BadRequestError):
            await tenant_service.create_tenant(TenantCreate(organization_name="!!!"))

    async def test_empty_region(self, tenant_service, tenant_store):
        with pytest.raises(NoCellsAvailableError):
            await tenant_service.create_tenant(TenantCreate(organization_name="Acme"))

        assert tenant_store.tenants == {}

    async def test_releases_slot_when_store_fails(self, tenant_service, cell_store, tenant_store):
        """A tenant that cannot be stored does not keep its cell slot."""
        cell = cell_store.seed(make_cell(current_tenant_count=7))
        tenant_store.fail("create")

        with pytest.raises(StorageError):
            await tenant_service.create_tenant(TenantCreate(organization_name="Acme"))

        assert cell_store.cells[cell.id].current_tenant_count == 7


class TestLookups:
    async def test_get_tenant(self, tenant_service, tenant_store):
        tenant = tenant_store.seed(make_tenant())

        assert await tenant_service.get_tenant(tenant.id) == tenant

    async def test_get_tenant_not_found(self, tenant_service):
        with pytest.raises(NotFoundError):
            await tenant_service.get_tenant(uuid4())

    async def test_get_tenant_cell(self, tenant_service, tenant_store):
        cell = make_cell()
        tenant = tenant_store.seed(make_tenant(cell, subdomain="acme"))

        routing = await tenant_service.get_tenant_cell("acme")

        assert routing.tenant_id == tenant.id
        assert routing.cell_name == cell.name
        assert routing.cell_backend_pool == cell.backend_pool

    async def test_get_tenant_cell_unknown(self, tenant_service):
        with pytest.raises(NotFoundError):
            await tenant_service.get_tenant_cell("nobody")
