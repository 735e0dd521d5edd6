"""Cell assignment engine.

Picks the cell a tenant should live on, claims a slot on it and provisions
a new cell when nothing compliant has room.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from app.core.errors import NoCapacityError, NoCellsAvailableError, VersionConflictError
from app.modules.cells.compliance import match_score, satisfies
from app.modules.cells.counters import CellFullError, adjust_tenant_count
from app.modules.cells.interfaces import CellStore
from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner
from app.modules.cells.schemas import (
    CellAssignmentResult,
    CellProvisionRequest,
    CellRecord,
    PlacementRequest,
)
from app.modules.tenants.models import TenantTier


log = structlog.get_logger()


def select_dedicated_cell(
    cells: Sequence[CellRecord],
    required: Sequence[str],
) -> CellRecord | None:
    """Pick an empty compliant dedicated cell.

    Exact compliance matches win, then cells with the fewest extra
    features, then the first one listed.
    """
    candidates = [
        cell
        for cell in cells
        if cell.cell_type == CellType.DEDICATED
        and cell.current_tenant_count == 0
        and satisfies(cell.compliance_features, required)
    ]
    if not candidates:
        return None

    def rank(cell: CellRecord) -> tuple[bool, int]:
        exact, extra = match_score(cell.compliance_features, required)
        return not exact, extra

    # min() keeps the first of equal candidates
    return min(candidates, key=rank)


def select_shared_cell(
    cells: Sequence[CellRecord],
    required: Sequence[str],
) -> CellRecord | None:
    """Pick the least-loaded compliant shared cell with room."""
    candidates = [
        cell
        for cell in cells
        if cell.cell_type == CellType.SHARED
        and cell.has_room
        and satisfies(cell.compliance_features, required)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda cell: cell.current_tenant_count)


@dataclass(frozen=True, slots=True)
class PlacementPath:
    """How one family of tiers is placed."""

    cell_type: CellType
    select: Callable[[Sequence[CellRecord], Sequence[str]], CellRecord | None]

    def regional_cap(self, policy: PlacementPolicy) -> int:
        if self.cell_type == CellType.DEDICATED:
            return policy.max_dedicated_cells_per_region
        return policy.max_shared_cells_per_region


DEDICATED_PATH = PlacementPath(cell_type=CellType.DEDICATED, select=select_dedicated_cell)
SHARED_PATH = PlacementPath(cell_type=CellType.SHARED, select=select_shared_cell)

PLACEMENT_PATHS: dict[TenantTier, PlacementPath] = {
    TenantTier.DEDICATED: DEDICATED_PATH,
    TenantTier.ENTERPRISE: DEDICATED_PATH,
    TenantTier.SHARED: SHARED_PATH,
    TenantTier.SMB: SHARED_PATH,
    TenantTier.STARTUP: SHARED_PATH,
}

ISOLATED_TIERS = frozenset(
    tier for tier, path in PLACEMENT_PATHS.items() if path is DEDICATED_PATH
)


class CellAssignmentEngine:
    """Places tenants onto cells.

    Selection reads the region's Active cells, the chosen cell's counter is
    bumped with a conditional write, and a cell that fills up between the
    read and the claim sends the engine back to selection.
    """

    def __init__(
        self,
        cells: CellStore,
        provisioner: CellProvisioner,
        policy: PlacementPolicy,
    ) -> None:
        self.cells = cells
        self.provisioner = provisioner
        self.policy = policy

    async def assign_cell(
        self,
        request: PlacementRequest,
        cancel: asyncio.Event | None = None,
    ) -> CellAssignmentResult:
        """Assign a tenant to a cell and claim a slot on it.

        Args:
            request: Tier, region and compliance requirements
            cancel: Optional caller cancellation signal

        Returns:
            Result describing the chosen cell

        Raises:
            NoCellsAvailableError: If the region has no Active cells
            NoCapacityError: If nothing fits and the regional cap is reached
            StorageError: If the repository fails
            VersionConflictError: If the counter update keeps losing races
            OperationCancelledError: If ``cancel`` is set before a write
        """
        path = PLACEMENT_PATHS[request.tier]
        attempts = self.policy.placement_max_attempts
        lost: NoCapacityError | VersionConflictError | None = None

        for attempt in range(1, attempts + 1):
            active = await self.cells.query(request.region, CellStatus.ACTIVE)
            if not active:
                raise NoCellsAvailableError(
                    request.region,
                    f"No active cells available in region {request.region}",
                )

            cell = path.select(active, request.required_compliance)
            provisioned = cell is None
            if cell is None:
                cell = await self._provision(path, request, active, cancel)

            try:
                claimed = await adjust_tenant_count(
                    self.cells,
                    cell,
                    1,
                    max_attempts=self.policy.counter_update_max_attempts,
                    cancel=cancel,
                )
            except (CellFullError, VersionConflictError) as exc:
                log.info(
                    "cell_claim_lost",
                    cell_name=cell.name,
                    region=request.region,
                    attempt=attempt,
                    error_code=exc.error_code,
                )
                lost = exc
                continue

            reason = self._reason(path, provisioned)
            log.info(
                "cell_assigned",
                cell_name=claimed.name,
                tenant_tier=request.tier,
                region=request.region,
                tenant_count=claimed.current_tenant_count,
                provisioned_new_cell=provisioned,
            )
            return CellAssignmentResult(
                success=True,
                cell_id=claimed.id,
                cell_name=claimed.name,
                cell_backend_pool=claimed.backend_pool,
                assigned_tier=request.tier,
                assignment_reason=reason,
                provisioned_new_cell=provisioned,
                assigned_at=datetime.now(UTC),
            )

        if isinstance(lost, VersionConflictError):
            raise lost
        raise NoCapacityError(
            f"Cells in region {request.region} kept filling up during assignment",
            region=request.region,
            details={"attempts": attempts},
        )

    async def _provision(
        self,
        path: PlacementPath,
        request: PlacementRequest,
        active: Sequence[CellRecord],
        cancel: asyncio.Event | None,
    ) -> CellRecord:
        cap = path.regional_cap(self.policy)
        pending = await self.cells.query(request.region, CellStatus.PROVISIONING, path.cell_type)
        existing = len(pending) + sum(1 for cell in active if cell.cell_type == path.cell_type)
        if existing >= cap:
            raise NoCapacityError(
                f"No {path.cell_type.lower()} cell capacity in region {request.region} "
                f"and the limit of {cap} cells is reached",
                region=request.region,
                details={"cell_type": path.cell_type, "limit": cap},
            )

        return await self.provisioner.provision(
            CellProvisionRequest(
                region=request.region,
                cell_type=path.cell_type,
                compliance_features=request.required_compliance,
                reason=f"No available {path.cell_type.lower()} cell for {request.tier} tenant",
            ),
            cancel=cancel,
        )

    @staticmethod
    def _reason(path: PlacementPath, provisioned: bool) -> str:
        if path is DEDICATED_PATH:
            if provisioned:
                return "Provisioned new dedicated cell"
            return "Assigned to available dedicated cell"
        if provisioned:
            return "Provisioned new shared cell"
        return "Assigned to least-loaded shared cell"
