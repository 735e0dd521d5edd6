"""API tests for tenant routes."""

from uuid import uuid4

from app.modules.cells.models import CellType
from app.modules.tenants.models import TenantTier
from tests.factories import make_cell, make_tenant


class TestCreateTenant:
    async def test_create(self, client, cell_store):
        cell = cell_store.seed(make_cell())

        response = await client.post(
            "/api/v1/tenants",
            json={"organization_name": "Contoso Health", "tier": "SMB"},
        )

        body = response.json()
        assert response.status_code == 201
        assert body["subdomain"] == "contoso-health"
        assert body["status"] == "Active"
        assert body["cell_name"] == cell.name

    async def test_duplicate_subdomain(self, client, cell_store, tenant_store):
        cell = cell_store.seed(make_cell())
        tenant_store.seed(make_tenant(cell, subdomain="contoso"))

        response = await client.post(
            "/api/v1/tenants", json={"organization_name": "Contoso", "subdomain": "contoso"}
        )

        assert response.status_code == 409
        assert response.json()["subdomain"] == "contoso"

    async def test_invalid_subdomain(self, client):
        response = await client.post(
            "/api/v1/tenants", json={"organization_name": "Contoso", "subdomain": "Not Valid"}
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "subdomain"


class TestLookups:
    async def test_get_tenant(self, client, tenant_store):
        tenant = tenant_store.seed(make_tenant(make_cell()))

        response = await client.get(f"/api/v1/tenants/{tenant.id}")

        assert response.status_code == 200
        assert response.json()["subdomain"] == tenant.subdomain

    async def test_get_unknown_tenant(self, client):
        response = await client.get(f"/api/v1/tenants/{uuid4()}")

        assert response.status_code == 404

    async def test_resolve_cell(self, client, tenant_store):
        cell = make_cell()
        tenant_store.seed(make_tenant(cell, subdomain="fabrikam"))

        response = await client.get("/api/v1/tenants/by-subdomain/fabrikam/cell")

        assert response.status_code == 200
        assert response.json()["cell_backend_pool"] == cell.backend_pool


class TestMigration:
    async def test_migrate_to_dedicated(self, client, cell_store, tenant_store):
        cell = cell_store.seed(make_cell(current_tenant_count=1))
        tenant = tenant_store.seed(make_tenant(cell))

        response = await client.post(
            f"/api/v1/tenants/{tenant.id}/migrate",
            json={"target_tier": "Enterprise", "reason": "Upgrade"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["source_cell"] == cell.name
        assert body["target_cell"].startswith("dedicated-eastus-")
        assert tenant_store.tenants[tenant.id].tier == TenantTier.ENTERPRISE

    async def test_isolation_violation(self, client, cell_store, tenant_store):
        cell = cell_store.seed(make_cell(CellType.DEDICATED, current_tenant_count=1))
        tenant = tenant_store.seed(make_tenant(cell, tier=TenantTier.DEDICATED))

        response = await client.post(
            f"/api/v1/tenants/{tenant.id}/migrate", json={"target_tier": "Startup"}
        )

        assert response.status_code == 422
        assert response.json()["type"].endswith("/errors/isolation_violation")

    async def test_recover(self, client):
        response = await client.post("/api/v1/tenants/migrations/recover")

        assert response.status_code == 200
        assert response.json() == {"completed": [], "rolled_back": [], "pending": [], "failed": []}
