"""Repository tests against PostgreSQL."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from app.core.errors import InvalidStateError, NotFoundError, StorageError, VersionConflictError
from app.modules.cells.assignment import CellAssignmentEngine
from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner
from app.modules.cells.repos import CellRepository
from app.modules.cells.schemas import PlacementRequest
from app.modules.tenants.models import MigrationState, TenantStatus, TenantTier
from app.modules.tenants.repos import MigrationRepository, TenantRepository
from app.modules.tenants.schemas import MigrationRecord
from tests.factories import make_cell, make_tenant
from tests.fakes import RecordingNotifier


pytestmark = pytest.mark.integration


class TestCellRepository:
    async def test_create_and_read(self, db):
        repo = CellRepository(db)
        cell = await repo.create(make_cell(compliance_features=["HIPAA"]))

        assert cell.created_at is not None
        assert await repo.get(cell.id) == cell
        assert (await repo.get_by_name(cell.name)).id == cell.id
        assert [c.id for c in await repo.query("eastus", CellStatus.ACTIVE)] == [cell.id]
        assert await repo.query("eastus", CellStatus.ACTIVE, CellType.DEDICATED) == []

    async def test_conditional_update_bumps_version(self, db):
        repo = CellRepository(db)
        cell = await repo.create(make_cell())

        updated = await repo.conditional_update(
            cell.model_copy(update={"current_tenant_count": 1}), expected_version=cell.version
        )

        assert updated.version == cell.version + 1
        assert updated.current_tenant_count == 1

    async def test_stale_version_conflicts(self, db):
        repo = CellRepository(db)
        cell = await repo.create(make_cell())
        await repo.conditional_update(
            cell.model_copy(update={"current_tenant_count": 1}), expected_version=cell.version
        )

        with pytest.raises(VersionConflictError):
            await repo.conditional_update(
                cell.model_copy(update={"current_tenant_count": 5}),
                expected_version=cell.version,
            )

        assert (await repo.get(cell.id)).current_tenant_count == 1

    async def test_count_bounds_are_enforced(self, db):
        repo = CellRepository(db)
        cell = await repo.create(make_cell(CellType.DEDICATED))

        with pytest.raises(StorageError):
            await repo.conditional_update(
                cell.model_copy(update={"current_tenant_count": 2}), expected_version=cell.version
            )


class TestTenantRepository:
    async def test_create_lookup_update(self, db):
        cell = await CellRepository(db).create(make_cell())
        repo = TenantRepository(db)
        tenant = await repo.create(make_tenant(cell, subdomain="acme"))

        assert (await repo.get_by_subdomain("acme")).id == tenant.id
        assert [t.id for t in await repo.query(TenantStatus.ACTIVE, "eastus")] == [tenant.id]

        moved = await repo.update(tenant.model_copy(update={"status": TenantStatus.MIGRATING}))

        assert moved.status == TenantStatus.MIGRATING
        assert await repo.query(TenantStatus.ACTIVE) == []

    async def test_duplicate_subdomain(self, db):
        repo = TenantRepository(db)
        await repo.create(make_tenant(subdomain="acme"))

        with pytest.raises(StorageError):
            await repo.create(make_tenant(subdomain="acme"))

    async def test_transition_status_is_conditional(self, db):
        repo = TenantRepository(db)
        tenant = await repo.create(make_tenant(subdomain="acme"))

        migrating = await repo.transition_status(
            tenant.id, TenantStatus.ACTIVE, TenantStatus.MIGRATING
        )

        assert migrating.status == TenantStatus.MIGRATING
        with pytest.raises(InvalidStateError):
            await repo.transition_status(tenant.id, TenantStatus.ACTIVE, TenantStatus.MIGRATING)
        with pytest.raises(NotFoundError):
            await repo.transition_status(uuid4(), TenantStatus.ACTIVE, TenantStatus.MIGRATING)

    async def test_update_missing(self, db):
        with pytest.raises(NotFoundError):
            await TenantRepository(db).update(make_tenant())


class TestMigrationRepository:
    async def test_list_unfinished(self, db):
        cells = CellRepository(db)
        source = await cells.create(make_cell())
        target = await cells.create(make_cell(CellType.DEDICATED))
        tenant = await TenantRepository(db).create(make_tenant(source))
        repo = MigrationRepository(db)

        def intent(state):
            return MigrationRecord(
                id=uuid4(),
                tenant_id=tenant.id,
                state=state,
                source_cell_id=source.id,
                source_cell_name=source.name,
                source_backend_pool=source.backend_pool,
                source_tier=TenantTier.SHARED,
                target_cell_id=target.id,
                target_cell_name=target.name,
                target_backend_pool=target.backend_pool,
                target_tier=TenantTier.ENTERPRISE,
            )

        open_intent = await repo.create(intent(MigrationState.TARGET_CLAIMED))
        await repo.create(intent(MigrationState.COMPLETED))
        await repo.create(intent(MigrationState.ROLLED_BACK))

        assert [m.id for m in await repo.list_unfinished()] == [open_intent.id]

        done = await repo.update(open_intent.model_copy(update={"state": MigrationState.COMPLETED}))

        assert done.state == MigrationState.COMPLETED
        assert await repo.list_unfinished() == []


class TestPlacementAgainstDatabase:
    async def test_assign_and_provision(self, db):
        cells = CellRepository(db)
        policy = PlacementPolicy()
        engine = CellAssignmentEngine(
            cells, CellProvisioner(cells, RecordingNotifier(), policy), policy
        )
        await cells.create(make_cell(current_tenant_count=99))

        first = await engine.assign_cell(PlacementRequest(tier=TenantTier.SMB, region="eastus"))
        second = await engine.assign_cell(PlacementRequest(tier=TenantTier.SMB, region="eastus"))

        assert first.provisioned_new_cell is False
        assert second.provisioned_new_cell is True
        assert (await cells.get(second.cell_id)).current_tenant_count == 1
        assert datetime.now(UTC) - second.assigned_at < timedelta(minutes=1)
