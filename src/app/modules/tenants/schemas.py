"""Pydantic schemas for tenant operations and migrations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.constants import MAX_NAME_LENGTH, MAX_REGION_LENGTH, MAX_SUBDOMAIN_LENGTH
from app.modules.cells.schemas import normalize_compliance
from app.modules.tenants.models import MigrationState, TenantStatus, TenantTier


# ============================================================
# Records
# ============================================================


class TenantRecord(BaseModel):
    """A tenant as read from the repository."""

    id: UUID
    subdomain: str
    organization_name: str
    contact_email: str | None = None
    tier: TenantTier
    region: str
    required_compliance: list[str] = Field(default_factory=list)
    status: TenantStatus
    cell_id: UUID | None = None
    cell_name: str | None = None
    cell_backend_pool: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MigrationRecord(BaseModel):
    """Durable migration intent."""

    id: UUID
    tenant_id: UUID
    state: MigrationState
    reason: str | None = None
    source_cell_id: UUID | None = None
    source_cell_name: str | None = None
    source_backend_pool: str | None = None
    source_tier: TenantTier
    target_cell_id: UUID
    target_cell_name: str
    target_backend_pool: str
    target_provisioned: bool = False
    target_tier: TenantTier
    error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================
# Tenant Schemas
# ============================================================


class TenantCreate(BaseModel):
    """Schema for registering a new tenant.

    ``subdomain`` is derived from the organization name when omitted;
    ``region`` falls back to the configured default region.
    """

    organization_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    subdomain: str | None = Field(
        None,
        min_length=1,
        max_length=MAX_SUBDOMAIN_LENGTH,
        pattern=r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$",
    )
    contact_email: EmailStr | None = None
    tier: TenantTier = TenantTier.SHARED
    region: str | None = Field(None, min_length=1, max_length=MAX_REGION_LENGTH)
    required_compliance: list[str] = Field(default_factory=list)

    @field_validator("required_compliance")
    @classmethod
    def clean_compliance(cls, v: list[str]) -> list[str]:
        """Normalize compliance tags."""
        return normalize_compliance(v)


class TenantResponse(BaseModel):
    """Schema for tenant response data."""

    id: UUID
    subdomain: str
    organization_name: str
    contact_email: str | None
    tier: TenantTier
    region: str
    required_compliance: list[str]
    status: TenantStatus
    cell_name: str | None
    cell_backend_pool: str | None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TenantCellResponse(BaseModel):
    """Routing lookup for a tenant subdomain."""

    subdomain: str
    tenant_id: UUID
    cell_name: str | None
    cell_backend_pool: str | None
    region: str
    status: TenantStatus


# ============================================================
# Migration Schemas
# ============================================================


class MigrationRequest(BaseModel):
    """Request to move a tenant to a new tier and cell."""

    target_tier: TenantTier
    required_compliance: list[str] | None = None
    reason: str | None = Field(None, max_length=MAX_NAME_LENGTH)

    @field_validator("required_compliance")
    @classmethod
    def clean_compliance(cls, v: list[str] | None) -> list[str] | None:
        """Normalize compliance tags, keeping None as 'use the tenant's'."""
        return None if v is None else normalize_compliance(v)


class MigrationResult(BaseModel):
    """Outcome of a completed migration."""

    migration_id: UUID
    tenant_id: UUID
    source_cell: str | None
    target_cell: str
    target_tier: TenantTier
    started_at: datetime
    estimated_completion: datetime


class MigrationRecoveryReport(BaseModel):
    """Summary of one recovery sweep over unfinished migrations."""

    completed: list[UUID] = Field(default_factory=list)
    rolled_back: list[UUID] = Field(default_factory=list)
    pending: list[UUID] = Field(default_factory=list)
    failed: list[UUID] = Field(default_factory=list)
