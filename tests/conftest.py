"""Pytest configuration and shared fixtures.

Unit and API tests run against in-memory stores; tests marked
``integration`` need PostgreSQL and are deselected by default.
"""

import pytest

from app.modules.cells.assignment import CellAssignmentEngine
from app.modules.cells.capacity import CapacityMonitor
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner
from app.modules.tenants.migration import MigrationOrchestrator
from app.modules.tenants.services import TenantService
from tests.fakes import (
    InMemoryCellStore,
    InMemoryMigrationStore,
    InMemoryTenantStore,
    RecordingNotifier,
)


@pytest.fixture
def policy() -> PlacementPolicy:
    """Default placement policy."""
    return PlacementPolicy()


@pytest.fixture
def cell_store() -> InMemoryCellStore:
    return InMemoryCellStore()


@pytest.fixture
def tenant_store() -> InMemoryTenantStore:
    return InMemoryTenantStore()


@pytest.fixture
def migration_store() -> InMemoryMigrationStore:
    return InMemoryMigrationStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def provisioner(
    cell_store: InMemoryCellStore,
    notifier: RecordingNotifier,
    policy: PlacementPolicy,
) -> CellProvisioner:
    return CellProvisioner(cell_store, notifier, policy)


@pytest.fixture
def engine(
    cell_store: InMemoryCellStore,
    provisioner: CellProvisioner,
    policy: PlacementPolicy,
) -> CellAssignmentEngine:
    return CellAssignmentEngine(cell_store, provisioner, policy)


@pytest.fixture
def monitor(
    cell_store: InMemoryCellStore,
    tenant_store: InMemoryTenantStore,
    provisioner: CellProvisioner,
    policy: PlacementPolicy,
) -> CapacityMonitor:
    return CapacityMonitor(cell_store, tenant_store, provisioner, policy)


@pytest.fixture
def orchestrator(
    tenant_store: InMemoryTenantStore,
    cell_store: InMemoryCellStore,
    migration_store: InMemoryMigrationStore,
    provisioner: CellProvisioner,
    policy: PlacementPolicy,
) -> MigrationOrchestrator:
    return MigrationOrchestrator(tenant_store, cell_store, migration_store, provisioner, policy)


@pytest.fixture
def tenant_service(
    tenant_store: InMemoryTenantStore,
    cell_store: InMemoryCellStore,
    engine: CellAssignmentEngine,
    policy: PlacementPolicy,
) -> TenantService:
    return TenantService(tenant_store, cell_store, engine, policy)
