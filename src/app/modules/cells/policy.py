"""Placement and capacity policy knobs."""

from dataclasses import dataclass

from app.config import Settings, settings
from app.core.constants import DEFAULT_REGION


@dataclass(frozen=True, slots=True)
class PlacementPolicy:
    """Limits and thresholds used by placement, provisioning and monitoring.

    Built from application settings in production; tests construct it
    directly.
    """

    default_region: str = DEFAULT_REGION
    max_tenants_per_shared_cell: int = 100
    max_shared_cells_per_region: int = 20
    max_dedicated_cells_per_region: int = 20
    max_cells_per_region: int = 20
    shared_cell_capacity_threshold: float = 0.8
    underutilized_cell_threshold: float = 0.3
    counter_update_max_attempts: int = 3
    placement_max_attempts: int = 10
    auto_activate_cells: bool = True
    migration_estimated_hours: int = 2
    migration_recovery_grace_seconds: int = 300

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "PlacementPolicy":
        """Build a policy from application settings."""
        source = source or settings
        return cls(
            default_region=source.default_region,
            max_tenants_per_shared_cell=source.max_tenants_per_shared_cell,
            max_shared_cells_per_region=source.max_shared_cells_per_region,
            max_dedicated_cells_per_region=source.max_dedicated_cells_per_region,
            max_cells_per_region=source.max_cells_per_region,
            shared_cell_capacity_threshold=source.shared_cell_capacity_threshold,
            underutilized_cell_threshold=source.underutilized_cell_threshold,
            counter_update_max_attempts=source.counter_update_max_attempts,
            placement_max_attempts=source.placement_max_attempts,
            auto_activate_cells=source.auto_activate_cells,
            migration_estimated_hours=source.migration_estimated_hours,
            migration_recovery_grace_seconds=source.migration_recovery_grace_seconds,
        )
