"""Pydantic schemas for cell placement and capacity reporting."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from app.core.constants import MAX_COMPLIANCE_TAG_LENGTH, MAX_REGION_LENGTH
from app.modules.cells.models import CellStatus, CellType
from app.modules.tenants.models import TenantTier


def normalize_compliance(tags: list[str] | None) -> list[str]:
    """Strip, de-duplicate and sort compliance tags.

    Tags are compared case-sensitively ("HIPAA" and "hipaa" differ), matching
    how they are stored on cells.
    """
    if not tags:
        return []
    cleaned = {tag.strip() for tag in tags if tag and tag.strip()}
    for tag in cleaned:
        if len(tag) > MAX_COMPLIANCE_TAG_LENGTH:
            raise ValueError(f"Compliance tag too long: {tag[:16]}...")
    return sorted(cleaned)


# ============================================================
# Records
# ============================================================


class CellRecord(BaseModel):
    """A cell as read from the repository.

    ``version`` is the optimistic concurrency token the record was read at.
    """

    id: UUID
    name: str
    backend_pool: str
    cell_type: CellType
    region: str
    max_tenant_count: int
    current_tenant_count: int = 0
    status: CellStatus
    compliance_features: list[str] = Field(default_factory=list)
    cpu_utilization: float = 0.0
    memory_utilization: float = 0.0
    storage_utilization: float = 0.0
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def utilization(self) -> float:
        """Tenant count as a ratio of capacity (0 for zero-capacity cells)."""
        if self.max_tenant_count <= 0:
            return 0.0
        return self.current_tenant_count / self.max_tenant_count

    @property
    def has_room(self) -> bool:
        """Whether one more tenant can be admitted."""
        return self.current_tenant_count < self.max_tenant_count


# ============================================================
# Placement
# ============================================================


class PlacementRequest(BaseModel):
    """Tenant descriptor handed to the assignment engine.

    Region and tier defaults are applied upstream by the caller.
    """

    tier: TenantTier
    region: str = Field(..., min_length=1, max_length=MAX_REGION_LENGTH)
    required_compliance: list[str] = Field(default_factory=list)
    tenant_id: UUID | None = None

    @field_validator("required_compliance")
    @classmethod
    def clean_compliance(cls, v: list[str]) -> list[str]:
        """Normalize compliance tags."""
        return normalize_compliance(v)


class CellAssignmentResult(BaseModel):
    """Outcome of a placement attempt. Never persisted."""

    success: bool
    cell_id: UUID | None = None
    cell_name: str | None = None
    cell_backend_pool: str | None = None
    assigned_tier: TenantTier | None = None
    assignment_reason: str = ""
    error_message: str | None = None
    provisioned_new_cell: bool = False
    assigned_at: datetime


# ============================================================
# Provisioning
# ============================================================


class CellProvisionRequest(BaseModel):
    """Request to provision a new cell."""

    region: str = Field(..., min_length=1, max_length=MAX_REGION_LENGTH)
    cell_type: CellType = CellType.SHARED
    compliance_features: list[str] = Field(default_factory=list)
    max_tenant_count: int | None = Field(None, ge=1)
    reason: str | None = None

    @field_validator("compliance_features")
    @classmethod
    def clean_compliance(cls, v: list[str]) -> list[str]:
        """Normalize compliance tags."""
        return normalize_compliance(v)


class CellProvisionConfirmation(BaseModel):
    """Completion callback from external infrastructure automation."""

    succeeded: bool = True
    detail: str | None = None


class CellResponse(BaseModel):
    """Schema for cell response data."""

    id: UUID
    name: str
    backend_pool: str
    cell_type: CellType
    region: str
    max_tenant_count: int
    current_tenant_count: int
    status: CellStatus
    compliance_features: list[str]
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================
# Capacity reports
# ============================================================


class RegionCapacityReport(BaseModel):
    """Point-in-time capacity view of one region."""

    region: str
    shared_cells: list[CellRecord] = Field(default_factory=list)
    dedicated_cells: list[CellRecord] = Field(default_factory=list)
    total_tenants: int = 0
    shared_cell_utilization: float = 0.0
    needs_new_shared_cell: bool = False


class RegionSweepStatus(StrEnum):
    """Outcome of processing one region during a capacity pass."""

    OK = "ok"
    PROVISIONED = "provisioned"
    AT_CAP = "at_cap"
    FAILED = "failed"


class RegionSweepResult(BaseModel):
    """Per-region result of a capacity pass."""

    region: str
    status: RegionSweepStatus
    new_cell_name: str | None = None
    error: str | None = None


class MigrationCandidate(BaseModel):
    """Isolated-tier tenant currently placed on a shared cell."""

    tenant_id: UUID
    subdomain: str
    tier: TenantTier
    region: str
    cell_name: str | None


class CapacityReport(BaseModel):
    """Aggregate produced by one capacity pass. Derived, never persisted."""

    timestamp: datetime
    total_cells: int
    total_tenants: int
    shared_cells_at_capacity: int
    new_cells_provisioned: int = 0
    region_reports: list[RegionCapacityReport] = Field(default_factory=list)
    region_results: list[RegionSweepResult] = Field(default_factory=list)
    migration_candidates: list[MigrationCandidate] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def skipped_regions(self) -> list[str]:
        """Regions whose processing failed during the pass."""
        return [
            result.region
            for result in self.region_results
            if result.status == RegionSweepStatus.FAILED
        ]


class CellCapacityInfo(BaseModel):
    """Capacity line for one cell in a snapshot."""

    cell_id: UUID
    cell_name: str
    cell_type: CellType
    region: str
    current_tenants: int
    max_tenants: int
    capacity_percentage: float
    cpu_utilization: float
    memory_utilization: float
    storage_utilization: float
    status: CellStatus


class CapacitySnapshot(BaseModel):
    """Read-only capacity listing of active cells."""

    total_cells: int
    shared_cells: int
    dedicated_cells: int
    average_capacity: float
    cells: list[CellCapacityInfo] = Field(default_factory=list)


class RegionAnalytics(BaseModel):
    """Per-region analytics line."""

    region: str
    total_cells: int
    shared_cells: int
    dedicated_cells: int
    total_tenants: int
    average_capacity_utilization: float
    cost_optimization_score: float


class CellAnalyticsReport(BaseModel):
    """Analytics across all active cells and tenants."""

    generated_at: datetime
    total_cells: int
    total_tenants: int
    tenant_distribution: dict[str, int] = Field(default_factory=dict)
    global_capacity_utilization: float = 0.0
    region_analytics: list[RegionAnalytics] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)


class JobAccepted(BaseModel):
    """Background job accepted for execution."""

    job_id: str | None = None
