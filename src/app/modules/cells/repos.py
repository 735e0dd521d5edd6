"""Cell repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select, update

from app.api.dependencies import DBSession
from app.core.database.errors import storage_errors
from app.core.errors import VersionConflictError
from app.modules.cells.models import Cell, CellStatus, CellType
from app.modules.cells.schemas import CellRecord


# Columns a conditional update may change; identity and type are fixed at creation
_MUTABLE_FIELDS = (
    "status",
    "max_tenant_count",
    "current_tenant_count",
    "compliance_features",
    "cpu_utilization",
    "memory_utilization",
    "storage_utilization",
)


class CellRepository:
    """Repository for Cell database operations.

    Each write commits on its own so that every repository write is
    individually durable and atomic, as the placement engine assumes.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get(self, cell_id: UUID) -> CellRecord | None:
        """Get a cell by ID.

        Args:
            cell_id: The cell's UUID

        Returns:
            The cell record if found, None otherwise
        """
        async with storage_errors(self.session, "cells.get"):
            cell = await self.session.get(Cell, cell_id, populate_existing=True)
        return CellRecord.model_validate(cell) if cell else None

    async def get_by_name(self, name: str) -> CellRecord | None:
        """Get a cell by its unique name.

        Args:
            name: Cell name, e.g. ``shared-eastus-1a2b3c4d``

        Returns:
            The cell record if found, None otherwise
        """
        stmt = select(Cell).where(Cell.name == name).execution_options(populate_existing=True)
        async with storage_errors(self.session, "cells.get_by_name"):
            result = await self.session.execute(stmt)
            cell = result.scalar_one_or_none()
        return CellRecord.model_validate(cell) if cell else None

    async def query(
        self,
        region: str,
        status: CellStatus,
        cell_type: CellType | None = None,
    ) -> list[CellRecord]:
        """List cells in a region with a given status.

        Args:
            region: Region to search
            status: Required cell status
            cell_type: Optional cell type filter

        Returns:
            Matching cells ordered by creation time
        """
        stmt = select(Cell).where(Cell.region == region, Cell.status == status)
        if cell_type is not None:
            stmt = stmt.where(Cell.cell_type == cell_type)
        stmt = stmt.order_by(Cell.created_at).execution_options(populate_existing=True)
        async with storage_errors(self.session, "cells.query"):
            result = await self.session.execute(stmt)
            cells = result.scalars().all()
        return [CellRecord.model_validate(cell) for cell in cells]

    async def list_by_status(self, status: CellStatus) -> list[CellRecord]:
        """List cells in every region with a given status."""
        stmt = (
            select(Cell)
            .where(Cell.status == status)
            .order_by(Cell.region, Cell.created_at)
            .execution_options(populate_existing=True)
        )
        async with storage_errors(self.session, "cells.list_by_status"):
            result = await self.session.execute(stmt)
            cells = result.scalars().all()
        return [CellRecord.model_validate(cell) for cell in cells]

    async def create(self, cell: CellRecord) -> CellRecord:
        """Create a new cell.

        Args:
            cell: Cell record to persist

        Returns:
            The stored record with server defaults populated
        """
        model = Cell(
            id=cell.id,
            name=cell.name,
            backend_pool=cell.backend_pool,
            cell_type=cell.cell_type,
            region=cell.region,
            max_tenant_count=cell.max_tenant_count,
            current_tenant_count=cell.current_tenant_count,
            status=cell.status,
            compliance_features=list(cell.compliance_features),
            cpu_utilization=cell.cpu_utilization,
            memory_utilization=cell.memory_utilization,
            storage_utilization=cell.storage_utilization,
            version=cell.version,
        )
        async with storage_errors(self.session, "cells.create"):
            self.session.add(model)
            await self.session.commit()
            await self.session.refresh(model)
        return CellRecord.model_validate(model)

    async def conditional_update(self, cell: CellRecord, expected_version: int) -> CellRecord:
        """Write a cell only if nobody else has written it since it was read.

        Args:
            cell: Record carrying the new field values
            expected_version: Version the caller read

        Returns:
            The stored record with its version bumped

        Raises:
            VersionConflictError: If the stored version moved on
            StorageError: If the backend fails
        """
        values = {field: getattr(cell, field) for field in _MUTABLE_FIELDS}
        values["compliance_features"] = list(cell.compliance_features)
        values["version"] = expected_version + 1
        stmt = (
            update(Cell)
            .where(Cell.id == cell.id, Cell.version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with storage_errors(self.session, "cells.conditional_update"):
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                await self.session.rollback()
                raise VersionConflictError(
                    "Cell was modified concurrently",
                    resource_id=str(cell.id),
                    expected_version=expected_version,
                )
            await self.session.commit()
        stored = await self.get(cell.id)
        if stored is None:
            raise VersionConflictError(
                "Cell disappeared during update",
                resource_id=str(cell.id),
                expected_version=expected_version,
            )
        return stored


# Type alias for dependency injection
CellRepo = Annotated[CellRepository, Depends(CellRepository)]
