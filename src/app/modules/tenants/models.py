"""Tenant database models."""

from enum import StrEnum
from uuid import UUID

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import (
    MAX_CELL_NAME_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_ERROR_LENGTH,
    MAX_NAME_LENGTH,
    MAX_REGION_LENGTH,
    MAX_SUBDOMAIN_LENGTH,
)
from app.core.database.base import Base, TimestampMixin, UUIDMixin


class TenantTier(StrEnum):
    """Tenant classification that decides the placement policy."""

    STARTUP = "Startup"
    SMB = "SMB"
    SHARED = "Shared"
    ENTERPRISE = "Enterprise"
    DEDICATED = "Dedicated"


class TenantStatus(StrEnum):
    """Tenant lifecycle status."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    SUSPENDED = "Suspended"
    MIGRATING = "Migrating"
    PROVISIONING = "Provisioning"
    DEPROVISIONING = "Deprovisioning"


class MigrationState(StrEnum):
    """Progress of a durable migration intent."""

    STARTED = "Started"
    TARGET_CLAIMED = "TargetClaimed"
    TENANT_MOVED = "TenantMoved"
    COMPLETED = "Completed"
    ROLLED_BACK = "RolledBack"


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


class Tenant(Base, UUIDMixin, TimestampMixin):
    """Tenant model representing a customer placed on exactly one cell.

    Attributes:
        subdomain: Unique routing subdomain
        tier: Placement tier
        region: Region the tenant must be placed in
        required_compliance: Compliance tags any hosting cell must offer
        status: Lifecycle status
        cell_id: Assigned cell
        cell_name: Assigned cell name (denormalized for routing)
        cell_backend_pool: Assigned backend pool (denormalized for routing)
    """

    __tablename__ = "tenants"

    subdomain: Mapped[str] = mapped_column(
        String(MAX_SUBDOMAIN_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    organization_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    contact_email: Mapped[str | None] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=True,
    )
    tier: Mapped[TenantTier] = mapped_column(
        Enum(TenantTier, name="tenant_tier", values_callable=_enum_values),
        nullable=False,
    )
    region: Mapped[str] = mapped_column(
        String(MAX_REGION_LENGTH),
        nullable=False,
        index=True,
    )
    required_compliance: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    status: Mapped[TenantStatus] = mapped_column(
        Enum(TenantStatus, name="tenant_status", values_callable=_enum_values),
        default=TenantStatus.PROVISIONING,
        nullable=False,
        index=True,
    )

    # Cell pointer
    cell_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("cells.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    cell_name: Mapped[str | None] = mapped_column(
        String(MAX_CELL_NAME_LENGTH),
        nullable=True,
    )
    cell_backend_pool: Mapped[str | None] = mapped_column(
        String(MAX_CELL_NAME_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, subdomain={self.subdomain}, cell={self.cell_name})>"


class TenantMigration(Base, UUIDMixin, TimestampMixin):
    """Durable record of a migration in flight.

    Written before the first counter changes so that a recovery sweep can
    finish or roll back a migration interrupted part way through.
    """

    __tablename__ = "tenant_migrations"

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    state: Mapped[MigrationState] = mapped_column(
        Enum(MigrationState, name="migration_state", values_callable=_enum_values),
        default=MigrationState.STARTED,
        nullable=False,
        index=True,
    )
    reason: Mapped[str | None] = mapped_column(String(MAX_NAME_LENGTH), nullable=True)

    source_cell_id: Mapped[UUID | None] = mapped_column(nullable=True)
    source_cell_name: Mapped[str | None] = mapped_column(
        String(MAX_CELL_NAME_LENGTH), nullable=True
    )
    source_backend_pool: Mapped[str | None] = mapped_column(
        String(MAX_CELL_NAME_LENGTH), nullable=True
    )
    source_tier: Mapped[TenantTier] = mapped_column(
        Enum(TenantTier, name="tenant_tier", values_callable=_enum_values, create_type=False),
        nullable=False,
    )

    target_cell_id: Mapped[UUID] = mapped_column(nullable=False)
    target_cell_name: Mapped[str] = mapped_column(String(MAX_CELL_NAME_LENGTH), nullable=False)
    target_backend_pool: Mapped[str] = mapped_column(
        String(MAX_CELL_NAME_LENGTH), nullable=False
    )
    target_provisioned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    target_tier: Mapped[TenantTier] = mapped_column(
        Enum(TenantTier, name="tenant_tier", values_callable=_enum_values, create_type=False),
        nullable=False,
    )

    error: Mapped[str | None] = mapped_column(String(MAX_ERROR_LENGTH), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<TenantMigration(id={self.id}, tenant_id={self.tenant_id}, "
            f"state={self.state})>"
        )
