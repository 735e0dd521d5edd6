"""Optimistic read-modify-write of a cell's tenant counter."""

import asyncio

import structlog

from app.core.errors import NoCapacityError, NotFoundError, VersionConflictError
from app.core.utils.cancellation import raise_if_cancelled
from app.modules.cells.interfaces import CellStore
from app.modules.cells.schemas import CellRecord


log = structlog.get_logger()


class CellFullError(NoCapacityError):
    """Raised when an increment would push a cell past its capacity."""

    error_code = "cell_full"


async def adjust_tenant_count(
    cells: CellStore,
    cell: CellRecord,
    delta: int,
    *,
    max_attempts: int,
    cancel: asyncio.Event | None = None,
) -> CellRecord:
    """Add ``delta`` to a cell's tenant count under optimistic concurrency.

    The first attempt uses ``cell`` as read by the caller; after a version
    conflict the cell is re-read and the change recomputed. Increments never
    exceed ``max_tenant_count``; decrements are clamped at zero.

    Args:
        cells: Cell store offering conditional updates
        cell: The cell as last read by the caller
        delta: Change to apply (+1 to claim a slot, -1 to release one)
        max_attempts: Bound on read-modify-write attempts
        cancel: Optional caller cancellation signal

    Returns:
        The stored cell after the change

    Raises:
        CellFullError: If the cell has no room left for an increment
        NotFoundError: If the cell disappeared
        VersionConflictError: If every attempt lost a race
    """
    current = cell
    for attempt in range(1, max_attempts + 1):
        new_count = current.current_tenant_count + delta
        if delta > 0 and new_count > current.max_tenant_count:
            raise CellFullError(
                f"Cell {current.name} is full",
                region=current.region,
                details={"cell_name": current.name},
            )
        new_count = max(0, new_count)
        if new_count == current.current_tenant_count:
            # Clamped release on an already-empty cell
            return current

        raise_if_cancelled(cancel, "tenant_count_update")
        try:
            updated = await cells.conditional_update(
                current.model_copy(update={"current_tenant_count": new_count}),
                expected_version=current.version,
            )
        except VersionConflictError:
            log.debug(
                "tenant_count_conflict",
                cell_name=current.name,
                attempt=attempt,
                max_attempts=max_attempts,
            )
            if attempt == max_attempts:
                raise
            refreshed = await cells.get(current.id)
            if refreshed is None:
                raise NotFoundError(
                    "Cell not found", resource="cell", resource_id=str(current.id)
                ) from None
            current = refreshed
            continue

        log.debug(
            "tenant_count_updated",
            cell_name=updated.name,
            delta=delta,
            tenant_count=updated.current_tenant_count,
            version=updated.version,
        )
        return updated

    # Only reached when max_attempts < 1
    raise VersionConflictError(resource_id=str(cell.id), expected_version=cell.version)
