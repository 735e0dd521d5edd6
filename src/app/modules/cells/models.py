"""Cell database models."""

from enum import StrEnum

from sqlalchemy import JSON, CheckConstraint, Enum, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import MAX_CELL_NAME_LENGTH, MAX_REGION_LENGTH
from app.core.database.base import Base, TimestampMixin, UUIDMixin, VersionedMixin


class CellType(StrEnum):
    """Kind of execution pool a cell provides."""

    SHARED = "Shared"
    DEDICATED = "Dedicated"


class CellStatus(StrEnum):
    """Operational status of a cell."""

    PROVISIONING = "Provisioning"
    ACTIVE = "Active"
    MAINTENANCE = "Maintenance"
    AT_CAPACITY = "AtCapacity"
    DEPRECATED = "Deprecated"
    FAILED = "Failed"


class Cell(Base, UUIDMixin, TimestampMixin, VersionedMixin):
    """Cell model representing a shared or dedicated execution pool.

    ``current_tenant_count`` is the only contended column; it is written
    exclusively through conditional updates guarded by ``version``.

    Attributes:
        name: Unique cell name, prefixed with the cell type
        backend_pool: Routing target for tenants placed on this cell
        cell_type: Shared (many tenants) or Dedicated (one tenant)
        region: Deployment region
        max_tenant_count: Hard admission limit (1 for dedicated cells)
        current_tenant_count: Tenants currently counted against the cell
        status: Lifecycle status
        compliance_features: Compliance tags the cell is certified for
        cpu_utilization: Advisory CPU usage ratio
        memory_utilization: Advisory memory usage ratio
        storage_utilization: Advisory storage usage ratio
    """

    __tablename__ = "cells"
    __table_args__ = (
        CheckConstraint(
            "current_tenant_count >= 0 AND current_tenant_count <= max_tenant_count",
            name="ck_cells_tenant_count_bounds",
        ),
        Index("ix_cells_region_status", "region", "status"),
    )

    name: Mapped[str] = mapped_column(
        String(MAX_CELL_NAME_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    backend_pool: Mapped[str] = mapped_column(
        String(MAX_CELL_NAME_LENGTH),
        nullable=False,
    )
    cell_type: Mapped[CellType] = mapped_column(
        Enum(CellType, name="cell_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    region: Mapped[str] = mapped_column(
        String(MAX_REGION_LENGTH),
        nullable=False,
        index=True,
    )
    max_tenant_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    current_tenant_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    status: Mapped[CellStatus] = mapped_column(
        Enum(CellStatus, name="cell_status", values_callable=lambda e: [m.value for m in e]),
        default=CellStatus.PROVISIONING,
        nullable=False,
        index=True,
    )
    compliance_features: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )

    # Advisory utilization metrics, never used for admission control
    cpu_utilization: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    memory_utilization: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    storage_utilization: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Cell(id={self.id}, name={self.name}, type={self.cell_type}, "
            f"tenants={self.current_tenant_count}/{self.max_tenant_count})>"
        )
