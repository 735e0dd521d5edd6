"""Tenant migration between cells.

A migration is a short saga recorded in ``tenant_migrations``, moving
through Started, TargetClaimed, TenantMoved and Completed, or ending in
RolledBack before the tenant moves.

The tenant is switched from Active to Migrating with a conditional write
before the intent is recorded, so at most one migration per tenant runs at
a time. A dedicated destination is provisioned only after the intent
exists and is retired again if the migration rolls back.

Until the tenant pointer moves, a failure is compensated in line (the
destination slot is released and the tenant restored on its original
cell). Once the pointer has moved it is never moved back; releasing the
source slot is retried by ``recover_migrations`` if it does not happen in
line.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import structlog

from app.core.constants import MAX_ERROR_LENGTH
from app.core.errors import (
    AppException,
    InvalidStateError,
    IsolationViolationError,
    MigrationFailedError,
    NoCapacityError,
    NotFoundError,
    OperationCancelledError,
)
from app.core.utils.cancellation import raise_if_cancelled
from app.modules.cells.assignment import ISOLATED_TIERS, select_shared_cell
from app.modules.cells.counters import adjust_tenant_count
from app.modules.cells.interfaces import CellStore
from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner
from app.modules.cells.schemas import CellProvisionRequest, CellRecord
from app.modules.tenants.interfaces import MigrationStore, TenantStore
from app.modules.tenants.models import MigrationState, TenantStatus, TenantTier
from app.modules.tenants.schemas import (
    MigrationRecord,
    MigrationRecoveryReport,
    MigrationResult,
    TenantRecord,
)


log = structlog.get_logger()

# Raised unchanged by migrate_tenant; other AppExceptions become MigrationFailedError
_DOMAIN_ERRORS = (
    NotFoundError,
    InvalidStateError,
    IsolationViolationError,
    NoCapacityError,
    OperationCancelledError,
)


def _error_text(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"[:MAX_ERROR_LENGTH]


class MigrationOrchestrator:
    """Moves tenants between cells and repairs interrupted moves."""

    def __init__(
        self,
        tenants: TenantStore,
        cells: CellStore,
        migrations: MigrationStore,
        provisioner: CellProvisioner,
        policy: PlacementPolicy,
    ) -> None:
        self.tenants = tenants
        self.cells = cells
        self.migrations = migrations
        self.provisioner = provisioner
        self.policy = policy

    async def migrate_tenant(
        self,
        tenant_id: UUID,
        target_tier: TenantTier,
        required_compliance: list[str] | None = None,
        reason: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> MigrationResult:
        """Move a tenant to a new tier and a cell that suits it.

        Isolated tiers (Enterprise, Dedicated) always get a freshly
        provisioned dedicated cell; other tiers take the least-loaded
        compliant shared cell. An empty ``required_compliance`` keeps the
        tenant's current requirements.

        Args:
            tenant_id: Tenant to move
            target_tier: Tier the tenant moves to
            required_compliance: Compliance tags the destination must offer
            reason: Free-text reason recorded on the migration
            cancel: Optional caller cancellation signal

        Returns:
            Migration id, source and destination cells and timing estimate

        Raises:
            NotFoundError: If the tenant does not exist
            InvalidStateError: If the tenant is not Active, including when
                another migration of it is already running
            IsolationViolationError: If an isolated tenant would move to a shared tier
            NoCapacityError: If no destination cell is available
            MigrationFailedError: If a step fails before the tenant pointer moves
        """
        started_at = datetime.now(UTC)
        try:
            tenant = await self._load_migratable(tenant_id, target_tier)
            compliance = list(required_compliance or tenant.required_compliance)
            target, planned = await self._resolve_target(tenant, target_tier, compliance)
            raise_if_cancelled(cancel, "migrate_tenant")
            await self.tenants.transition_status(
                tenant.id, TenantStatus.ACTIVE, TenantStatus.MIGRATING
            )
        except _DOMAIN_ERRORS:
            raise
        except AppException as exc:
            raise MigrationFailedError(
                f"Migration of tenant {tenant_id} failed", cause=exc
            ) from exc

        try:
            migration = await self.migrations.create(
                MigrationRecord(
                    id=uuid4(),
                    tenant_id=tenant.id,
                    state=MigrationState.STARTED,
                    reason=reason,
                    source_cell_id=tenant.cell_id,
                    source_cell_name=tenant.cell_name,
                    source_backend_pool=tenant.cell_backend_pool,
                    source_tier=tenant.tier,
                    target_cell_id=target.id,
                    target_cell_name=target.name,
                    target_backend_pool=target.backend_pool,
                    target_provisioned=planned,
                    target_tier=target_tier,
                )
            )
        except AppException as exc:
            await self._reactivate(tenant)
            raise MigrationFailedError(
                f"Migration of tenant {tenant.subdomain} failed", cause=exc
            ) from exc
        log.info(
            "migration_started",
            migration_id=str(migration.id),
            subdomain=tenant.subdomain,
            source_cell=tenant.cell_name,
            target_cell=target.name,
            target_tier=target_tier,
        )

        claimed = False
        try:
            if planned:
                target = await self.provisioner.provision_planned(
                    target,
                    reason or f"Migration of {tenant.subdomain} to {target_tier}",
                    cancel=cancel,
                )
            raise_if_cancelled(cancel, "migrate_tenant")
            await adjust_tenant_count(
                self.cells,
                target,
                1,
                max_attempts=self.policy.counter_update_max_attempts,
                cancel=cancel,
            )
            claimed = True
            migration = await self._set_state(migration, MigrationState.TARGET_CLAIMED)
            raise_if_cancelled(cancel, "migrate_tenant")
            await self.tenants.update(
                tenant.model_copy(
                    update={
                        "status": TenantStatus.ACTIVE,
                        "tier": target_tier,
                        "required_compliance": compliance,
                        "cell_id": target.id,
                        "cell_name": target.name,
                        "cell_backend_pool": target.backend_pool,
                    }
                )
            )
        except OperationCancelledError:
            log.warning("migration_cancelled", migration_id=str(migration.id))
            raise
        except Exception as exc:
            await self._compensate(migration, tenant, claimed, exc)
            raise MigrationFailedError(
                f"Migration of tenant {tenant.subdomain} failed",
                cause=exc,
                details={"migration_id": str(migration.id)},
            ) from exc

        try:
            migration = await self._set_state(migration, MigrationState.TENANT_MOVED)
            await self._finish(migration, cancel)
        except AppException as exc:
            log.warning(
                "migration_completion_deferred",
                migration_id=str(migration.id),
                error=exc.message,
            )

        return MigrationResult(
            migration_id=migration.id,
            tenant_id=tenant.id,
            source_cell=tenant.cell_name,
            target_cell=target.name,
            target_tier=target_tier,
            started_at=started_at,
            estimated_completion=started_at
            + timedelta(hours=self.policy.migration_estimated_hours),
        )

    async def _load_migratable(self, tenant_id: UUID, target_tier: TenantTier) -> TenantRecord:
        tenant = await self.tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found", resource="tenant", resource_id=str(tenant_id))
        if tenant.status != TenantStatus.ACTIVE:
            raise InvalidStateError(
                f"Tenant {tenant.subdomain} must be Active to migrate",
                details={"status": tenant.status},
            )
        if tenant.tier in ISOLATED_TIERS and target_tier not in ISOLATED_TIERS:
            raise IsolationViolationError(
                f"Cannot migrate {tenant.tier} tenant {tenant.subdomain} to {target_tier}",
                details={"current_tier": tenant.tier, "target_tier": target_tier},
            )
        return tenant

    async def _resolve_target(
        self,
        tenant: TenantRecord,
        target_tier: TenantTier,
        compliance: list[str],
    ) -> tuple[CellRecord, bool]:
        """Pick the destination cell.

        Returns the cell and whether it still has to be provisioned; a
        planned dedicated cell is not stored yet.
        """
        if target_tier in ISOLATED_TIERS:
            cap = self.policy.max_dedicated_cells_per_region
            existing = 0
            for status in (CellStatus.ACTIVE, CellStatus.PROVISIONING):
                existing += len(await self.cells.query(tenant.region, status, CellType.DEDICATED))
            if existing >= cap:
                raise NoCapacityError(
                    f"Dedicated cell limit ({cap}) reached for region {tenant.region}",
                    region=tenant.region,
                    details={"limit": cap},
                )
            planned = self.provisioner.plan(
                CellProvisionRequest(
                    region=tenant.region,
                    cell_type=CellType.DEDICATED,
                    compliance_features=compliance,
                )
            )
            return planned, True

        shared = await self.cells.query(tenant.region, CellStatus.ACTIVE, CellType.SHARED)
        candidates = [cell for cell in shared if cell.id != tenant.cell_id]
        target = select_shared_cell(candidates, compliance)
        if target is None:
            raise NoCapacityError(
                f"No shared cell with capacity in region {tenant.region}",
                region=tenant.region,
                details={"required_compliance": compliance},
            )
        return target, False

    async def _reactivate(self, tenant: TenantRecord) -> None:
        """Return a tenant marked Migrating to Active when no intent was recorded."""
        try:
            await self.tenants.transition_status(
                tenant.id, TenantStatus.MIGRATING, TenantStatus.ACTIVE
            )
        except AppException as exc:
            log.error(
                "migration_tenant_reactivation_failed",
                subdomain=tenant.subdomain,
                error=exc.message,
            )

    async def _set_state(
        self, migration: MigrationRecord, state: MigrationState
    ) -> MigrationRecord:
        updated = await self.migrations.update(migration.model_copy(update={"state": state}))
        log.debug("migration_state_changed", migration_id=str(migration.id), state=state)
        return updated

    async def _release_target(self, migration: MigrationRecord) -> None:
        target = await self.cells.get(migration.target_cell_id)
        if target is None:
            log.warning("migration_target_missing", cell_name=migration.target_cell_name)
            return
        await adjust_tenant_count(
            self.cells,
            target,
            -1,
            max_attempts=self.policy.counter_update_max_attempts,
        )

    async def _retire_target(self, migration: MigrationRecord) -> None:
        if migration.target_provisioned:
            await self.provisioner.retire_if_empty(migration.target_cell_id)

    async def _release_source(
        self,
        migration: MigrationRecord,
        cancel: asyncio.Event | None = None,
    ) -> None:
        if not migration.source_cell_name:
            return
        source = await self.cells.get_by_name(migration.source_cell_name)
        if source is None:
            log.warning("migration_source_missing", cell_name=migration.source_cell_name)
            return
        await adjust_tenant_count(
            self.cells,
            source,
            -1,
            max_attempts=self.policy.counter_update_max_attempts,
            cancel=cancel,
        )

    async def _finish(
        self,
        migration: MigrationRecord,
        cancel: asyncio.Event | None = None,
    ) -> MigrationRecord:
        await self._release_source(migration, cancel)
        migration = await self._set_state(migration, MigrationState.COMPLETED)
        log.info(
            "migration_completed",
            migration_id=str(migration.id),
            source_cell=migration.source_cell_name,
            target_cell=migration.target_cell_name,
        )
        return migration

    async def _compensate(
        self,
        migration: MigrationRecord,
        original: TenantRecord,
        claimed: bool,
        cause: BaseException,
    ) -> None:
        """Undo a migration whose tenant pointer has not moved.

        Any step that fails here leaves the intent for the recovery sweep.
        """
        try:
            if claimed:
                await self._release_target(migration)
                # Started means no destination slot is held
                if migration.state != MigrationState.STARTED:
                    migration = await self._set_state(migration, MigrationState.STARTED)
            await self._retire_target(migration)
            await self.tenants.update(original)
            await self.migrations.update(
                migration.model_copy(
                    update={"state": MigrationState.ROLLED_BACK, "error": _error_text(cause)}
                )
            )
        except AppException as exc:
            log.error(
                "migration_compensation_failed",
                migration_id=str(migration.id),
                state=migration.state,
                error=exc.message,
            )
            return

        log.warning(
            "migration_rolled_back",
            migration_id=str(migration.id),
            subdomain=original.subdomain,
            error=_error_text(cause),
        )

    async def recover_migrations(
        self,
        cancel: asyncio.Event | None = None,
    ) -> MigrationRecoveryReport:
        """Finish or roll back migrations interrupted part way through.

        Intents whose tenant already points at the destination are finished.
        Intents that never got that far are rolled back once they are older
        than the recovery grace period; younger ones may still be running.
        """
        report = MigrationRecoveryReport()
        grace = timedelta(seconds=self.policy.migration_recovery_grace_seconds)
        now = datetime.now(UTC)

        for migration in await self.migrations.list_unfinished():
            raise_if_cancelled(cancel, "recover_migrations")
            try:
                outcome = await self._recover_one(migration, now - grace)
            except AppException as exc:
                log.error(
                    "migration_recovery_failed",
                    migration_id=str(migration.id),
                    state=migration.state,
                    error=exc.message,
                )
                report.failed.append(migration.id)
                continue
            getattr(report, outcome).append(migration.id)

        log.info(
            "migration_recovery_completed",
            completed=len(report.completed),
            rolled_back=len(report.rolled_back),
            pending=len(report.pending),
            failed=len(report.failed),
        )
        return report

    async def _recover_one(self, migration: MigrationRecord, stale_before: datetime) -> str:
        if migration.state == MigrationState.TENANT_MOVED:
            await self._finish(migration)
            return "completed"

        tenant = await self.tenants.get(migration.tenant_id)
        if tenant is not None and tenant.cell_id == migration.target_cell_id:
            # Pointer moved but the intent write was lost
            migration = await self._set_state(migration, MigrationState.TENANT_MOVED)
            await self._finish(migration)
            return "completed"

        last_touched = migration.updated_at or migration.created_at
        if last_touched is not None and last_touched > stale_before:
            return "pending"

        if migration.state == MigrationState.TARGET_CLAIMED:
            await self._release_target(migration)
            migration = await self._set_state(migration, MigrationState.STARTED)
        await self._retire_target(migration)
        if tenant is not None and tenant.status == TenantStatus.MIGRATING:
            await self.tenants.update(
                tenant.model_copy(
                    update={"status": TenantStatus.ACTIVE, "tier": migration.source_tier}
                )
            )
        await self.migrations.update(
            migration.model_copy(
                update={
                    "state": MigrationState.ROLLED_BACK,
                    "error": migration.error or "Rolled back by recovery sweep",
                }
            )
        )
        log.warning("migration_recovered_by_rollback", migration_id=str(migration.id))
        return "rolled_back"
