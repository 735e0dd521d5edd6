"""Cell provisioning primitive shared by placement, monitoring and migration.

The engine only records the intent to provision: it creates the cell
record, tells the ``ProvisioningNotifier`` about it and, unless the policy
asks to wait for external confirmation, marks the cell Active straight away.
"""

import asyncio
from uuid import UUID, uuid4

import structlog

from app.core.constants import (
    DEDICATED_CELL_CAPACITY,
    DEDICATED_CELL_PREFIX,
    SHARED_CELL_PREFIX,
)
from app.core.errors import InvalidStateError, NoCapacityError, NotFoundError, VersionConflictError
from app.core.utils.cancellation import raise_if_cancelled
from app.core.utils.text import backend_pool_for, generate_cell_name
from app.modules.cells.interfaces import CellStore, ProvisioningNotifier
from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.schemas import CellProvisionRequest, CellRecord


log = structlog.get_logger()


class LoggingProvisioningNotifier:
    """Notifier that records provisioning intent in the structured log.

    Infrastructure automation tails these events; nothing is awaited.
    """

    async def cell_requested(self, cell: CellRecord, reason: str | None = None) -> None:
        log.info(
            "cell_infrastructure_requested",
            cell_id=str(cell.id),
            cell_name=cell.name,
            cell_type=cell.cell_type,
            region=cell.region,
            compliance_features=cell.compliance_features,
            reason=reason,
        )


class CellProvisioner:
    """Creates cell records and drives their Provisioning transitions."""

    def __init__(
        self,
        cells: CellStore,
        notifier: ProvisioningNotifier,
        policy: PlacementPolicy,
    ) -> None:
        self.cells = cells
        self.notifier = notifier
        self.policy = policy

    async def provision(
        self,
        request: CellProvisionRequest,
        cancel: asyncio.Event | None = None,
    ) -> CellRecord:
        """Create a new cell for a region.

        Dedicated cells always hold exactly one tenant. Shared cells default
        to the policy's per-cell capacity.

        Args:
            request: Region, type, compliance features and optional capacity
            cancel: Optional caller cancellation signal

        Returns:
            The new cell, Active when auto-activation is on, else Provisioning
        """
        return await self.provision_planned(self.plan(request), request.reason, cancel=cancel)

    def plan(self, request: CellProvisionRequest) -> CellRecord:
        """Build the record for a new cell without storing it."""
        if request.cell_type == CellType.DEDICATED:
            prefix = DEDICATED_CELL_PREFIX
            capacity = DEDICATED_CELL_CAPACITY
        else:
            prefix = SHARED_CELL_PREFIX
            capacity = request.max_tenant_count or self.policy.max_tenants_per_shared_cell

        name = generate_cell_name(prefix, request.region)
        return CellRecord(
            id=uuid4(),
            name=name,
            backend_pool=backend_pool_for(name),
            cell_type=request.cell_type,
            region=request.region,
            max_tenant_count=capacity,
            current_tenant_count=0,
            status=CellStatus.PROVISIONING,
            compliance_features=list(request.compliance_features),
        )

    async def provision_planned(
        self,
        record: CellRecord,
        reason: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> CellRecord:
        """Store a cell built by :meth:`plan` and start provisioning it."""
        raise_if_cancelled(cancel, "provision_cell")
        cell = await self.cells.create(record)
        log.info(
            "cell_provisioning_started",
            cell_name=cell.name,
            cell_type=cell.cell_type,
            region=cell.region,
            max_tenant_count=cell.max_tenant_count,
            reason=reason,
        )

        try:
            await self.notifier.cell_requested(cell, reason)
        except Exception:
            # Fire-and-forget: delivery problems never fail placement
            log.exception("provisioning_notification_failed", cell_name=cell.name)

        if self.policy.auto_activate_cells:
            return await self._transition(cell, CellStatus.ACTIVE)
        return cell

    async def provision_manually(
        self,
        request: CellProvisionRequest,
        cancel: asyncio.Event | None = None,
    ) -> CellRecord:
        """Provision a cell on operator request, enforcing the regional limit.

        Raises:
            NoCapacityError: If the region already has the maximum number of
                active or provisioning cells
        """
        active = await self.cells.query(request.region, CellStatus.ACTIVE)
        pending = await self.cells.query(request.region, CellStatus.PROVISIONING)
        if len(active) + len(pending) >= self.policy.max_cells_per_region:
            raise NoCapacityError(
                f"Maximum cell limit ({self.policy.max_cells_per_region}) "
                f"reached for region {request.region}",
                region=request.region,
                details={"limit": self.policy.max_cells_per_region},
            )
        return await self.provision(request, cancel=cancel)

    async def confirm(
        self,
        cell_id: UUID,
        succeeded: bool,
        cancel: asyncio.Event | None = None,
    ) -> CellRecord:
        """Record the external outcome of provisioning a cell.

        Raises:
            NotFoundError: If the cell does not exist
            InvalidStateError: If the cell is not Provisioning
        """
        cell = await self.cells.get(cell_id)
        if cell is None:
            raise NotFoundError("Cell not found", resource="cell", resource_id=str(cell_id))
        if cell.status != CellStatus.PROVISIONING:
            raise InvalidStateError(
                f"Cell {cell.name} is not provisioning",
                details={"cell_name": cell.name, "status": cell.status},
            )
        raise_if_cancelled(cancel, "confirm_provisioning")
        target = CellStatus.ACTIVE if succeeded else CellStatus.FAILED
        return await self._transition(cell, target)

    async def retire_if_empty(self, cell_id: UUID) -> CellRecord | None:
        """Deprecate a cell that holds no tenants.

        Deprecated cells take no new placements and no longer count against
        regional limits.

        Returns:
            The deprecated cell, or None if it is missing, already deprecated
            or has tenants
        """
        current = await self.cells.get(cell_id)
        attempts = self.policy.counter_update_max_attempts
        for attempt in range(1, attempts + 1):
            if (
                current is None
                or current.current_tenant_count > 0
                or current.status == CellStatus.DEPRECATED
            ):
                return None
            try:
                retired = await self.cells.conditional_update(
                    current.model_copy(update={"status": CellStatus.DEPRECATED}),
                    expected_version=current.version,
                )
            except VersionConflictError:
                if attempt == attempts:
                    raise
                current = await self.cells.get(cell_id)
                continue

            log.info("cell_retired", cell_name=retired.name, region=retired.region)
            return retired

        raise VersionConflictError(resource_id=str(cell_id))

    async def _transition(self, cell: CellRecord, status: CellStatus) -> CellRecord:
        """Move a Provisioning cell to ``status``, retrying version conflicts.

        Tenants may already be claiming slots on a fresh cell, so a conflict
        here only means the counter moved; the status change is reapplied
        on the re-read record.
        """
        current = cell
        attempts = self.policy.counter_update_max_attempts
        for attempt in range(1, attempts + 1):
            try:
                updated = await self.cells.conditional_update(
                    current.model_copy(update={"status": status}),
                    expected_version=current.version,
                )
            except VersionConflictError:
                if attempt == attempts:
                    raise
                refreshed = await self.cells.get(current.id)
                if refreshed is None:
                    raise NotFoundError(
                        "Cell not found", resource="cell", resource_id=str(current.id)
                    ) from None
                if refreshed.status != CellStatus.PROVISIONING:
                    raise InvalidStateError(
                        f"Cell {refreshed.name} left Provisioning concurrently",
                        details={"cell_name": refreshed.name, "status": refreshed.status},
                    ) from None
                current = refreshed
                continue

            log.info("cell_status_changed", cell_name=updated.name, status=updated.status)
            return updated

        raise VersionConflictError(resource_id=str(cell.id), expected_version=cell.version)
