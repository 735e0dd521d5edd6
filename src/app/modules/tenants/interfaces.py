"""Tenant and migration store contracts."""

from typing import Protocol, runtime_checkable
from uuid import UUID

from app.modules.tenants.models import TenantStatus
from app.modules.tenants.schemas import MigrationRecord, TenantRecord


@runtime_checkable
class TenantStore(Protocol):
    """Tenant persistence used by placement, monitoring and migration.

    Implementations raise ``StorageError`` for backend failures.
    """

    async def get(self, tenant_id: UUID) -> TenantRecord | None: ...

    async def get_by_subdomain(self, subdomain: str) -> TenantRecord | None: ...

    async def query(
        self,
        status: TenantStatus,
        region: str | None = None,
    ) -> list[TenantRecord]: ...

    async def create(self, tenant: TenantRecord) -> TenantRecord: ...

    async def update(self, tenant: TenantRecord) -> TenantRecord:
        """Replace the stored tenant with ``tenant``."""
        ...

    async def transition_status(
        self,
        tenant_id: UUID,
        expected: TenantStatus,
        status: TenantStatus,
    ) -> TenantRecord:
        """Atomically move a tenant from ``expected`` to ``status``.

        Raises ``InvalidStateError`` when the tenant no longer has
        ``expected`` and ``NotFoundError`` when it is gone.
        """
        ...


@runtime_checkable
class MigrationStore(Protocol):
    """Durable migration intents."""

    async def get(self, migration_id: UUID) -> MigrationRecord | None: ...

    async def create(self, migration: MigrationRecord) -> MigrationRecord: ...

    async def update(self, migration: MigrationRecord) -> MigrationRecord: ...

    async def list_unfinished(self) -> list[MigrationRecord]:
        """List intents not yet Completed or RolledBack, oldest first."""
        ...
