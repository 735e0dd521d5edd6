"""FastAPI dependency providers for the placement engine."""

from typing import Annotated

from fastapi import Depends

from app.config import get_settings
from app.modules.cells.assignment import CellAssignmentEngine
from app.modules.cells.capacity import CapacityMonitor
from app.modules.cells.interfaces import ProvisioningNotifier
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner, LoggingProvisioningNotifier
from app.modules.cells.repos import CellRepo
from app.modules.tenants.repos import TenantRepo


def get_policy() -> PlacementPolicy:
    """Placement policy built from the current settings."""
    return PlacementPolicy.from_settings(get_settings())


def get_notifier() -> ProvisioningNotifier:
    return LoggingProvisioningNotifier()


Policy = Annotated[PlacementPolicy, Depends(get_policy)]
Notifier = Annotated[ProvisioningNotifier, Depends(get_notifier)]


def get_provisioner(cells: CellRepo, notifier: Notifier, policy: Policy) -> CellProvisioner:
    return CellProvisioner(cells, notifier, policy)


Provisioner = Annotated[CellProvisioner, Depends(get_provisioner)]


def get_assignment_engine(
    cells: CellRepo,
    provisioner: Provisioner,
    policy: Policy,
) -> CellAssignmentEngine:
    return CellAssignmentEngine(cells, provisioner, policy)


def get_capacity_monitor(
    cells: CellRepo,
    tenants: TenantRepo,
    provisioner: Provisioner,
    policy: Policy,
) -> CapacityMonitor:
    return CapacityMonitor(cells, tenants, provisioner, policy)


# Type aliases for dependency injection
AssignmentEngine = Annotated[CellAssignmentEngine, Depends(get_assignment_engine)]
Monitor = Annotated[CapacityMonitor, Depends(get_capacity_monitor)]
