"""Factory for cell records."""

from typing import Any
from uuid import uuid4

from polyfactory import Use
from polyfactory.factories.pydantic_factory import ModelFactory

from app.core.constants import DEDICATED_CELL_PREFIX, SHARED_CELL_PREFIX
from app.core.utils.text import backend_pool_for, generate_cell_name
from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.schemas import CellRecord


class CellRecordFactory(ModelFactory[CellRecord]):
    """Factory for generating active shared cells in eastus."""

    __model__ = CellRecord

    id = Use(uuid4)
    cell_type = CellType.SHARED
    region = "eastus"
    max_tenant_count = 100
    current_tenant_count = 0
    status = CellStatus.ACTIVE
    compliance_features = Use(list)
    cpu_utilization = 0.0
    memory_utilization = 0.0
    storage_utilization = 0.0
    version = 1
    created_at = None
    updated_at = None

    @classmethod
    def name(cls) -> str:
        """Generate a shared cell name."""
        return generate_cell_name(SHARED_CELL_PREFIX, "eastus")

    @classmethod
    def backend_pool(cls) -> str:
        """Generate a backend pool name."""
        return f"pool-{uuid4().hex[:8]}"


def make_cell(
    cell_type: CellType = CellType.SHARED,
    region: str = "eastus",
    **kwargs: Any,
) -> CellRecord:
    """Build a cell whose name and capacity match its type and region."""
    prefix = DEDICATED_CELL_PREFIX if cell_type == CellType.DEDICATED else SHARED_CELL_PREFIX
    name = kwargs.pop("name", None) or generate_cell_name(prefix, region)
    kwargs.setdefault("max_tenant_count", 1 if cell_type == CellType.DEDICATED else 100)
    return CellRecordFactory.build(
        name=name,
        backend_pool=backend_pool_for(name),
        cell_type=cell_type,
        region=region,
        **kwargs,
    )
