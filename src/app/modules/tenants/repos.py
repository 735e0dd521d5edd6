"""Tenant and migration repositories for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select, update

from app.api.dependencies import DBSession
from app.core.database.errors import storage_errors
from app.core.errors import InvalidStateError, NotFoundError
from app.modules.tenants.models import MigrationState, Tenant, TenantMigration, TenantStatus
from app.modules.tenants.schemas import MigrationRecord, TenantRecord


_TENANT_FIELDS = (
    "subdomain",
    "organization_name",
    "contact_email",
    "tier",
    "region",
    "required_compliance",
    "status",
    "cell_id",
    "cell_name",
    "cell_backend_pool",
)

_MIGRATION_FIELDS = (
    "state",
    "reason",
    "source_cell_id",
    "source_cell_name",
    "source_backend_pool",
    "source_tier",
    "target_cell_id",
    "target_cell_name",
    "target_backend_pool",
    "target_provisioned",
    "target_tier",
    "error",
)

_FINISHED_STATES = (MigrationState.COMPLETED, MigrationState.ROLLED_BACK)


class TenantRepository:
    """Repository for Tenant database operations.

    Each write commits immediately.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get(self, tenant_id: UUID) -> TenantRecord | None:
        """Get a tenant by ID.

        Args:
            tenant_id: The tenant's UUID

        Returns:
            The tenant record if found, None otherwise
        """
        async with storage_errors(self.session, "tenants.get"):
            tenant = await self.session.get(Tenant, tenant_id, populate_existing=True)
        return TenantRecord.model_validate(tenant) if tenant else None

    async def get_by_subdomain(self, subdomain: str) -> TenantRecord | None:
        """Get a tenant by its routing subdomain."""
        stmt = (
            select(Tenant)
            .where(Tenant.subdomain == subdomain)
            .execution_options(populate_existing=True)
        )
        async with storage_errors(self.session, "tenants.get_by_subdomain"):
            result = await self.session.execute(stmt)
            tenant = result.scalar_one_or_none()
        return TenantRecord.model_validate(tenant) if tenant else None

    async def query(
        self,
        status: TenantStatus,
        region: str | None = None,
    ) -> list[TenantRecord]:
        """List tenants with a given status, optionally in one region."""
        stmt = select(Tenant).where(Tenant.status == status)
        if region is not None:
            stmt = stmt.where(Tenant.region == region)
        stmt = stmt.order_by(Tenant.created_at).execution_options(populate_existing=True)
        async with storage_errors(self.session, "tenants.query"):
            result = await self.session.execute(stmt)
            tenants = result.scalars().all()
        return [TenantRecord.model_validate(tenant) for tenant in tenants]

    async def create(self, tenant: TenantRecord) -> TenantRecord:
        """Create a new tenant.

        Args:
            tenant: Tenant record to persist

        Returns:
            The stored record with server defaults populated
        """
        model = Tenant(id=tenant.id, **{field: getattr(tenant, field) for field in _TENANT_FIELDS})
        model.required_compliance = list(tenant.required_compliance)
        async with storage_errors(self.session, "tenants.create"):
            self.session.add(model)
            await self.session.commit()
            await self.session.refresh(model)
        return TenantRecord.model_validate(model)

    async def update(self, tenant: TenantRecord) -> TenantRecord:
        """Replace the stored tenant's mutable fields.

        Raises:
            NotFoundError: If the tenant no longer exists
        """
        async with storage_errors(self.session, "tenants.update"):
            model = await self.session.get(Tenant, tenant.id, populate_existing=True)
            if model is None:
                raise NotFoundError(
                    "Tenant not found", resource="tenant", resource_id=str(tenant.id)
                )
            for field in _TENANT_FIELDS:
                setattr(model, field, getattr(tenant, field))
            model.required_compliance = list(tenant.required_compliance)
            await self.session.commit()
            await self.session.refresh(model)
        return TenantRecord.model_validate(model)

    async def transition_status(
        self,
        tenant_id: UUID,
        expected: TenantStatus,
        status: TenantStatus,
    ) -> TenantRecord:
        """Change a tenant's status only while it still has ``expected``.

        The check and the write are one statement, so of two callers racing
        to move a tenant out of the same status exactly one succeeds.

        Raises:
            NotFoundError: If the tenant does not exist
            InvalidStateError: If the tenant's status is no longer ``expected``
        """
        stmt = (
            update(Tenant)
            .where(Tenant.id == tenant_id, Tenant.status == expected)
            .values(status=status)
            .returning(Tenant)
            .execution_options(populate_existing=True)
        )
        async with storage_errors(self.session, "tenants.transition_status"):
            result = await self.session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is not None:
                await self.session.commit()
                return TenantRecord.model_validate(model)
            await self.session.rollback()

        stored = await self.get(tenant_id)
        if stored is None:
            raise NotFoundError("Tenant not found", resource="tenant", resource_id=str(tenant_id))
        raise InvalidStateError(
            f"Tenant {stored.subdomain} is {stored.status}, not {expected}",
            details={"status": stored.status, "expected": expected},
        )


class MigrationRepository:
    """Repository for durable migration intents."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get(self, migration_id: UUID) -> MigrationRecord | None:
        """Get a migration intent by ID."""
        async with storage_errors(self.session, "tenant_migrations.get"):
            migration = await self.session.get(
                TenantMigration, migration_id, populate_existing=True
            )
        return MigrationRecord.model_validate(migration) if migration else None

    async def create(self, migration: MigrationRecord) -> MigrationRecord:
        """Persist a new migration intent."""
        model = TenantMigration(
            id=migration.id,
            tenant_id=migration.tenant_id,
            **{field: getattr(migration, field) for field in _MIGRATION_FIELDS},
        )
        async with storage_errors(self.session, "tenant_migrations.create"):
            self.session.add(model)
            await self.session.commit()
            await self.session.refresh(model)
        return MigrationRecord.model_validate(model)

    async def update(self, migration: MigrationRecord) -> MigrationRecord:
        """Write a migration intent's progress.

        Raises:
            NotFoundError: If the intent no longer exists
        """
        async with storage_errors(self.session, "tenant_migrations.update"):
            model = await self.session.get(
                TenantMigration, migration.id, populate_existing=True
            )
            if model is None:
                raise NotFoundError(
                    "Migration not found",
                    resource="tenant_migration",
                    resource_id=str(migration.id),
                )
            for field in _MIGRATION_FIELDS:
                setattr(model, field, getattr(migration, field))
            await self.session.commit()
            await self.session.refresh(model)
        return MigrationRecord.model_validate(model)

    async def list_unfinished(self) -> list[MigrationRecord]:
        """List intents that are neither Completed nor RolledBack, oldest first."""
        stmt = (
            select(TenantMigration)
            .where(TenantMigration.state.not_in(_FINISHED_STATES))
            .order_by(TenantMigration.created_at)
            .execution_options(populate_existing=True)
        )
        async with storage_errors(self.session, "tenant_migrations.list_unfinished"):
            result = await self.session.execute(stmt)
            migrations = result.scalars().all()
        return [MigrationRecord.model_validate(migration) for migration in migrations]


# Type aliases for dependency injection
TenantRepo = Annotated[TenantRepository, Depends(TenantRepository)]
MigrationRepo = Annotated[MigrationRepository, Depends(MigrationRepository)]
