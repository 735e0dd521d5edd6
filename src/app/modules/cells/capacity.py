"""Capacity monitoring, snapshots and analytics for cells."""

import asyncio
from collections import Counter, defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime
from statistics import fmean

import structlog

from app.core.constants import (
    DEDICATED_UTILIZATION_WEIGHT,
    SHARED_CELL_PREFIX,
    SHARED_EFFICIENCY_WEIGHT,
)
from app.core.errors import AppException, OperationCancelledError
from app.core.utils.cancellation import raise_if_cancelled
from app.modules.cells.assignment import ISOLATED_TIERS
from app.modules.cells.interfaces import CellStore
from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner
from app.modules.cells.schemas import (
    CapacityReport,
    CapacitySnapshot,
    CellAnalyticsReport,
    CellCapacityInfo,
    CellProvisionRequest,
    CellRecord,
    MigrationCandidate,
    RegionAnalytics,
    RegionCapacityReport,
    RegionSweepResult,
    RegionSweepStatus,
)
from app.modules.tenants.interfaces import TenantStore
from app.modules.tenants.models import TenantStatus
from app.modules.tenants.schemas import TenantRecord


log = structlog.get_logger()

AUTO_PROVISION_REASON = "Automated provisioning - shared cell capacity threshold reached"


def _percent(ratio: float) -> float:
    return round(ratio * 100, 2)


def _mean_utilization(cells: Sequence[CellRecord]) -> float:
    return fmean(cell.utilization for cell in cells) if cells else 0.0


def is_migration_candidate(tenant: TenantRecord) -> bool:
    """Whether an isolated-tier tenant is sitting on a shared cell."""
    return (
        tenant.tier in ISOLATED_TIERS
        and tenant.cell_name is not None
        and tenant.cell_name.startswith(SHARED_CELL_PREFIX)
    )


def cost_optimization_score(cells: Sequence[CellRecord]) -> float:
    """Score how efficiently a region's cells are used, from 0 to 100.

    Mean shared-cell utilization weighs 60%, the share of occupied
    dedicated cells 40%. A region without cells scores 100.
    """
    if not cells:
        return 100.0
    shared = [cell for cell in cells if cell.cell_type == CellType.SHARED]
    dedicated = [cell for cell in cells if cell.cell_type == CellType.DEDICATED]

    shared_efficiency = _mean_utilization(shared)
    occupied = sum(1 for cell in dedicated if cell.current_tenant_count > 0)
    dedicated_utilization = occupied / max(1, len(dedicated))

    score = (
        shared_efficiency * SHARED_EFFICIENCY_WEIGHT
        + dedicated_utilization * DEDICATED_UTILIZATION_WEIGHT
    ) * 100
    return round(score, 2)


class CapacityMonitor:
    """Periodic capacity pass plus read-only capacity views.

    The pass provisions at most one shared cell per region and never moves
    tenants; isolated tenants found on shared cells are only reported.
    """

    def __init__(
        self,
        cells: CellStore,
        tenants: TenantStore,
        provisioner: CellProvisioner,
        policy: PlacementPolicy,
    ) -> None:
        self.cells = cells
        self.tenants = tenants
        self.provisioner = provisioner
        self.policy = policy

    async def run_capacity_pass(self, cancel: asyncio.Event | None = None) -> CapacityReport:
        """Inspect every region and provision shared cells where needed.

        Args:
            cancel: Optional caller cancellation signal

        Returns:
            Aggregate report with one sweep result per region

        Raises:
            StorageError: If the initial load of cells or tenants fails
            OperationCancelledError: If ``cancel`` is set between regions
        """
        started = datetime.now(UTC)
        cells = await self.cells.list_by_status(CellStatus.ACTIVE)
        tenants = await self.tenants.query(TenantStatus.ACTIVE)

        region_reports = self.build_region_reports(cells, tenants)
        results: list[RegionSweepResult] = []
        for report in region_reports:
            raise_if_cancelled(cancel, "capacity_pass")
            try:
                result = await self._sweep_region(report, cancel)
            except OperationCancelledError:
                raise
            except AppException as exc:
                log.error(
                    "region_capacity_sweep_failed",
                    region=report.region,
                    error_code=exc.error_code,
                    error=exc.message,
                )
                result = RegionSweepResult(
                    region=report.region,
                    status=RegionSweepStatus.FAILED,
                    error=exc.message,
                )
            results.append(result)

        candidates = [
            MigrationCandidate(
                tenant_id=tenant.id,
                subdomain=tenant.subdomain,
                tier=tenant.tier,
                region=tenant.region,
                cell_name=tenant.cell_name,
            )
            for tenant in tenants
            if is_migration_candidate(tenant)
        ]

        threshold = self.policy.shared_cell_capacity_threshold
        report = CapacityReport(
            timestamp=started,
            total_cells=len(cells),
            total_tenants=len(tenants),
            shared_cells_at_capacity=sum(
                1
                for cell in cells
                if cell.cell_type == CellType.SHARED and cell.utilization >= threshold
            ),
            new_cells_provisioned=sum(
                1 for result in results if result.status == RegionSweepStatus.PROVISIONED
            ),
            region_reports=region_reports,
            region_results=results,
            migration_candidates=candidates,
            recommendations=self._pass_recommendations(results, candidates),
        )
        log.info(
            "capacity_pass_completed",
            total_cells=report.total_cells,
            total_tenants=report.total_tenants,
            shared_cells_at_capacity=report.shared_cells_at_capacity,
            new_cells_provisioned=report.new_cells_provisioned,
            skipped_regions=report.skipped_regions,
            migration_candidates=len(candidates),
        )
        return report

    def build_region_reports(
        self,
        cells: Sequence[CellRecord],
        tenants: Sequence[TenantRecord],
    ) -> list[RegionCapacityReport]:
        """Group active cells by region and flag regions that need a shared cell."""
        by_region: dict[str, list[CellRecord]] = defaultdict(list)
        for cell in cells:
            by_region[cell.region].append(cell)
        tenant_counts = Counter(tenant.region for tenant in tenants)
        threshold = self.policy.shared_cell_capacity_threshold

        reports = []
        for region in sorted(by_region):
            region_cells = by_region[region]
            shared = [cell for cell in region_cells if cell.cell_type == CellType.SHARED]
            dedicated = [cell for cell in region_cells if cell.cell_type == CellType.DEDICATED]
            reports.append(
                RegionCapacityReport(
                    region=region,
                    shared_cells=shared,
                    dedicated_cells=dedicated,
                    total_tenants=tenant_counts[region],
                    shared_cell_utilization=_mean_utilization(shared),
                    needs_new_shared_cell=all(cell.utilization >= threshold for cell in shared),
                )
            )
        return reports

    async def _sweep_region(
        self,
        report: RegionCapacityReport,
        cancel: asyncio.Event | None,
    ) -> RegionSweepResult:
        if not report.needs_new_shared_cell:
            return RegionSweepResult(region=report.region, status=RegionSweepStatus.OK)

        pending = await self.cells.query(report.region, CellStatus.PROVISIONING, CellType.SHARED)
        if pending:
            log.info("shared_cell_awaiting_activation", region=report.region, count=len(pending))
            return RegionSweepResult(region=report.region, status=RegionSweepStatus.OK)

        cap = self.policy.max_shared_cells_per_region
        if len(report.shared_cells) >= cap:
            log.warning("shared_cell_limit_reached", region=report.region, limit=cap)
            return RegionSweepResult(region=report.region, status=RegionSweepStatus.AT_CAP)

        cell = await self.provisioner.provision(
            CellProvisionRequest(
                region=report.region,
                cell_type=CellType.SHARED,
                reason=AUTO_PROVISION_REASON,
            ),
            cancel=cancel,
        )
        log.info("shared_cell_auto_provisioned", region=report.region, cell_name=cell.name)
        return RegionSweepResult(
            region=report.region,
            status=RegionSweepStatus.PROVISIONED,
            new_cell_name=cell.name,
        )

    @staticmethod
    def _pass_recommendations(
        results: Sequence[RegionSweepResult],
        candidates: Sequence[MigrationCandidate],
    ) -> list[str]:
        recommendations = [
            f"Region {result.region} reached its shared cell limit; raise the limit "
            "or rebalance tenants"
            for result in results
            if result.status == RegionSweepStatus.AT_CAP
        ]
        if candidates:
            recommendations.append(
                f"Consider migrating {len(candidates)} enterprise tenants to dedicated cells"
            )
        return recommendations

    async def get_capacity_snapshot(
        self,
        region: str | None = None,
        cell_type: CellType | None = None,
    ) -> CapacitySnapshot:
        """List capacity of active cells, optionally filtered by region and type."""
        if region:
            cells = await self.cells.query(region, CellStatus.ACTIVE, cell_type)
        else:
            cells = await self.cells.list_by_status(CellStatus.ACTIVE)
            if cell_type is not None:
                cells = [cell for cell in cells if cell.cell_type == cell_type]

        infos = [
            CellCapacityInfo(
                cell_id=cell.id,
                cell_name=cell.name,
                cell_type=cell.cell_type,
                region=cell.region,
                current_tenants=cell.current_tenant_count,
                max_tenants=cell.max_tenant_count,
                capacity_percentage=_percent(cell.utilization),
                cpu_utilization=cell.cpu_utilization,
                memory_utilization=cell.memory_utilization,
                storage_utilization=cell.storage_utilization,
                status=cell.status,
            )
            for cell in cells
        ]
        return CapacitySnapshot(
            total_cells=len(cells),
            shared_cells=sum(1 for cell in cells if cell.cell_type == CellType.SHARED),
            dedicated_cells=sum(1 for cell in cells if cell.cell_type == CellType.DEDICATED),
            average_capacity=_percent(_mean_utilization(cells)),
            cells=infos,
        )

    async def generate_analytics(self) -> CellAnalyticsReport:
        """Build distribution, per-region efficiency and recommended actions."""
        cells = await self.cells.list_by_status(CellStatus.ACTIVE)
        tenants = await self.tenants.query(TenantStatus.ACTIVE)

        by_region: dict[str, list[CellRecord]] = defaultdict(list)
        for cell in cells:
            by_region[cell.region].append(cell)
        tenant_counts = Counter(tenant.region for tenant in tenants)

        region_analytics = [
            RegionAnalytics(
                region=region,
                total_cells=len(region_cells),
                shared_cells=sum(1 for c in region_cells if c.cell_type == CellType.SHARED),
                dedicated_cells=sum(
                    1 for c in region_cells if c.cell_type == CellType.DEDICATED
                ),
                total_tenants=tenant_counts[region],
                average_capacity_utilization=_percent(_mean_utilization(region_cells)),
                cost_optimization_score=cost_optimization_score(region_cells),
            )
            for region, region_cells in sorted(by_region.items())
        ]

        return CellAnalyticsReport(
            generated_at=datetime.now(UTC),
            total_cells=len(cells),
            total_tenants=len(tenants),
            tenant_distribution=dict(Counter(str(tenant.tier) for tenant in tenants)),
            global_capacity_utilization=_percent(_mean_utilization(cells)),
            region_analytics=region_analytics,
            recommended_actions=self.recommendations(cells, tenants),
        )

    def recommendations(
        self,
        cells: Sequence[CellRecord],
        tenants: Sequence[TenantRecord],
    ) -> list[str]:
        """Suggest consolidation, deprovisioning and migration actions."""
        actions = []

        floor = self.policy.underutilized_cell_threshold
        underutilized = sum(
            1
            for cell in cells
            if cell.cell_type == CellType.SHARED
            and cell.current_tenant_count < cell.max_tenant_count * floor
        )
        if underutilized:
            actions.append(
                f"Consider consolidating {underutilized} underutilized shared CELLs "
                "to reduce costs"
            )

        empty_dedicated = sum(
            1
            for cell in cells
            if cell.cell_type == CellType.DEDICATED and cell.current_tenant_count == 0
        )
        if empty_dedicated:
            actions.append(
                f"Found {empty_dedicated} empty dedicated CELLs that can be deprovisioned"
            )

        misplaced = sum(1 for tenant in tenants if is_migration_candidate(tenant))
        if misplaced:
            actions.append(
                f"Consider migrating {misplaced} enterprise tenants to dedicated CELLs "
                "for better performance and isolation"
            )

        return actions
