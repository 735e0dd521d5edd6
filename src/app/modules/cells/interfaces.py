"""Collaborator contracts the placement engine is written against.

The SQLAlchemy repositories in ``app.modules.cells.repos`` implement these,
but any store offering conditional writes on a version token will do.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.schemas import CellRecord


@runtime_checkable
class CellStore(Protocol):
    """Fetch, list, create and conditionally update cell records.

    Implementations raise ``StorageError`` for backend failures and
    ``VersionConflictError`` when a conditional update loses a race.
    """

    async def get(self, cell_id: UUID) -> CellRecord | None:
        """Get a cell by ID."""
        ...

    async def get_by_name(self, name: str) -> CellRecord | None:
        """Get a cell by its unique name."""
        ...

    async def query(
        self,
        region: str,
        status: CellStatus,
        cell_type: CellType | None = None,
    ) -> list[CellRecord]:
        """List cells in a region with a given status, optionally by type."""
        ...

    async def list_by_status(self, status: CellStatus) -> list[CellRecord]:
        """List cells in every region with a given status."""
        ...

    async def create(self, cell: CellRecord) -> CellRecord:
        """Persist a new cell."""
        ...

    async def conditional_update(self, cell: CellRecord, expected_version: int) -> CellRecord:
        """Write ``cell`` only if the stored version still equals ``expected_version``.

        Returns the stored record with its bumped version.
        """
        ...


@runtime_checkable
class ProvisioningNotifier(Protocol):
    """Fire-and-forget hook for infrastructure automation.

    Called after a cell record is created. Must not raise for delivery
    problems; the engine does not wait on real infrastructure.
    """

    async def cell_requested(self, cell: CellRecord, reason: str | None = None) -> None:
        """Announce that a new cell needs infrastructure."""
        ...
