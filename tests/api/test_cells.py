"""API tests for cell placement and capacity routes."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.core.jobs.registry import ArqPoolHolder
from app.modules.cells.models import CellStatus, CellType
from tests.factories import make_cell


class TestAssign:
    async def test_assigns_least_loaded_cell(self, client, cell_store):
        cell_store.seed(make_cell(current_tenant_count=50))
        quiet = cell_store.seed(make_cell(current_tenant_count=20))

        response = await client.post(
            "/api/v1/cells/assign", json={"tier": "Shared", "region": "eastus"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["cell_name"] == quiet.name
        assert body["assignment_reason"] == "Assigned to least-loaded shared cell"
        assert cell_store.cells[quiet.id].current_tenant_count == 21

    async def test_empty_region_is_conflict(self, client):
        response = await client.post(
            "/api/v1/cells/assign", json={"tier": "Enterprise", "region": "brazilsouth"}
        )

        assert response.status_code == 409
        body = response.json()
        assert body["region"] == "brazilsouth"
        assert body["type"].endswith("/errors/no_cells_available")

    async def test_unknown_tier_is_rejected(self, client):
        response = await client.post(
            "/api/v1/cells/assign", json={"tier": "Platinum", "region": "eastus"}
        )

        assert response.status_code == 422


class TestProvisioning:
    async def test_provision_cell(self, client, cell_store):
        response = await client.post(
            "/api/v1/cells",
            json={"region": "westus", "cell_type": "Dedicated", "compliance_features": ["PCI"]},
        )

        body = response.json()
        assert response.status_code == 201
        assert body["max_tenant_count"] == 1
        assert body["status"] == "Active"
        assert body["compliance_features"] == ["PCI"]
        assert len(cell_store.cells) == 1

    async def test_confirm_unknown_cell(self, client):
        response = await client.post(f"/api/v1/cells/{uuid4()}/confirm", json={})

        assert response.status_code == 404

    async def test_confirm_active_cell(self, client, cell_store):
        cell = cell_store.seed(make_cell())

        response = await client.post(
            f"/api/v1/cells/{cell.id}/confirm", json={"succeeded": True}
        )

        assert response.status_code == 409
        assert response.json()["type"].endswith("/errors/invalid_state")

    async def test_confirm_provisioning_cell(self, client, cell_store):
        cell = cell_store.seed(make_cell(status=CellStatus.PROVISIONING))

        response = await client.post(
            f"/api/v1/cells/{cell.id}/confirm", json={"succeeded": False}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Failed"


class TestCapacity:
    async def test_snapshot_filters(self, client, cell_store):
        cell_store.seed(make_cell(current_tenant_count=40))
        cell_store.seed(make_cell(CellType.DEDICATED, current_tenant_count=1))

        response = await client.get(
            "/api/v1/cells/capacity", params={"region": "eastus", "cell_type": "Shared"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["total_cells"] == 1
        assert body["cells"][0]["capacity_percentage"] == 40.0

    async def test_run_pass(self, client, cell_store):
        cell_store.seed(make_cell(current_tenant_count=85))

        response = await client.post("/api/v1/cells/capacity/run")

        body = response.json()
        assert response.status_code == 200
        assert body["new_cells_provisioned"] == 1
        assert body["skipped_regions"] == []
        assert body["region_results"][0]["status"] == "provisioned"

    async def test_analytics(self, client, cell_store):
        cell_store.seed(make_cell(CellType.DEDICATED))

        response = await client.get("/api/v1/cells/analytics")

        body = response.json()
        assert response.status_code == 200
        assert body["recommended_actions"] == [
            "Found 1 empty dedicated CELLs that can be deprovisioned"
        ]


class TestScheduling:
    @pytest.fixture(autouse=True)
    def reset_pool(self):
        ArqPoolHolder.pool = None
        yield
        ArqPoolHolder.pool = None

    async def test_schedule_capacity_pass(self, client):
        pool = AsyncMock()
        pool.enqueue_job.return_value = MagicMock(job_id="job-42")
        ArqPoolHolder.pool = pool

        response = await client.post("/api/v1/cells/capacity/schedule")

        assert response.status_code == 202
        assert response.json() == {"job_id": "job-42"}
        pool.enqueue_job.assert_awaited_once()

    async def test_schedule_without_queue(self, client):
        response = await client.post("/api/v1/cells/capacity/schedule")

        assert response.status_code == 503
        assert "Retry-After" not in response.headers
