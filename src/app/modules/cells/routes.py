"""Cell placement and capacity API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.jobs.registry import enqueue
from app.modules.cells.dependencies import AssignmentEngine, Monitor, Provisioner
from app.modules.cells.models import CellType
from app.modules.cells.schemas import (
    CapacityReport,
    CapacitySnapshot,
    CellAnalyticsReport,
    CellAssignmentResult,
    CellProvisionConfirmation,
    CellProvisionRequest,
    CellResponse,
    JobAccepted,
    PlacementRequest,
)


router = APIRouter(prefix="/cells", tags=["cells"])


@router.post(
    "/assign",
    response_model=CellAssignmentResult,
    summary="Assign a cell",
    description="Choose a cell for a tenant descriptor and claim a slot on it.",
)
async def assign_cell(
    data: PlacementRequest,
    engine: AssignmentEngine,
) -> CellAssignmentResult:
    """Assign a tenant descriptor to a cell."""
    return await engine.assign_cell(data)


@router.post(
    "",
    response_model=CellResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Provision a cell",
    description="Manually provision a cell. Fails when the region is at its cell limit.",
)
async def provision_cell(
    data: CellProvisionRequest,
    provisioner: Provisioner,
) -> CellResponse:
    """Provision a cell on operator request."""
    cell = await provisioner.provision_manually(data)
    return CellResponse.model_validate(cell)


@router.post(
    "/{cell_id}/confirm",
    response_model=CellResponse,
    summary="Confirm provisioning",
    description="Record whether infrastructure for a Provisioning cell came up.",
)
async def confirm_cell(
    cell_id: UUID,
    data: CellProvisionConfirmation,
    provisioner: Provisioner,
) -> CellResponse:
    """Mark a Provisioning cell Active or Failed."""
    cell = await provisioner.confirm(cell_id, data.succeeded)
    return CellResponse.model_validate(cell)


@router.get(
    "/capacity",
    response_model=CapacitySnapshot,
    summary="Cell capacity",
    description="Capacity of active cells, optionally filtered by region and cell type.",
)
async def get_capacity(
    monitor: Monitor,
    region: str | None = Query(None, max_length=64),
    cell_type: CellType | None = Query(None),
) -> CapacitySnapshot:
    """Get a capacity snapshot."""
    return await monitor.get_capacity_snapshot(region=region, cell_type=cell_type)


@router.post(
    "/capacity/run",
    response_model=CapacityReport,
    summary="Run capacity pass",
    description="Run the capacity pass now instead of waiting for the scheduled job.",
)
async def run_capacity_pass(monitor: Monitor) -> CapacityReport:
    """Run a capacity pass."""
    return await monitor.run_capacity_pass()


@router.post(
    "/capacity/schedule",
    response_model=JobAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Schedule capacity pass",
    description="Queue a capacity pass on the background worker.",
)
async def schedule_capacity_pass() -> JobAccepted:
    """Enqueue a capacity pass job."""
    job = await enqueue("run_capacity_pass_job")
    return JobAccepted(job_id=job.job_id if job else None)


@router.get(
    "/analytics",
    response_model=CellAnalyticsReport,
    summary="Cell analytics",
    description="Tenant distribution, per-region efficiency and recommended actions.",
)
async def get_analytics(monitor: Monitor) -> CellAnalyticsReport:
    """Generate the analytics report."""
    return await monitor.generate_analytics()
