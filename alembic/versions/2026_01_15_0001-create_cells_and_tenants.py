"""create_cells_and_tenants

Revision ID: c7e1a2b3d4f5
Revises:
Create Date: 2026-01-15 00:01:00.000000

Creates the placement schema:
- cells with an optimistic concurrency version column
- tenants pointing at their assigned cell
- tenant_migrations holding durable migration intents
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "c7e1a2b3d4f5"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


CELL_TYPE = postgresql.ENUM("Shared", "Dedicated", name="cell_type", create_type=False)
CELL_STATUS = postgresql.ENUM(
    "Provisioning",
    "Active",
    "Maintenance",
    "AtCapacity",
    "Deprecated",
    "Failed",
    name="cell_status",
    create_type=False,
)
TENANT_TIER = postgresql.ENUM(
    "Startup", "SMB", "Shared", "Enterprise", "Dedicated", name="tenant_tier", create_type=False
)
TENANT_STATUS = postgresql.ENUM(
    "Active",
    "Inactive",
    "Suspended",
    "Migrating",
    "Provisioning",
    "Deprovisioning",
    name="tenant_status",
    create_type=False,
)
MIGRATION_STATE = postgresql.ENUM(
    "Started",
    "TargetClaimed",
    "TenantMoved",
    "Completed",
    "RolledBack",
    name="migration_state",
    create_type=False,
)
ENUMS = (CELL_TYPE, CELL_STATUS, TENANT_TIER, TENANT_STATUS, MIGRATION_STATE)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        "cells",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("backend_pool", sa.String(128), nullable=False),
        sa.Column("cell_type", CELL_TYPE, nullable=False),
        sa.Column("region", sa.String(64), nullable=False),
        sa.Column("max_tenant_count", sa.Integer(), nullable=False),
        sa.Column("current_tenant_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", CELL_STATUS, nullable=False),
        sa.Column("compliance_features", sa.JSON(), nullable=False),
        sa.Column("cpu_utilization", sa.Float(), nullable=False, server_default="0"),
        sa.Column("memory_utilization", sa.Float(), nullable=False, server_default="0"),
        sa.Column("storage_utilization", sa.Float(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.CheckConstraint(
            "current_tenant_count >= 0 AND current_tenant_count <= max_tenant_count",
            name="ck_cells_tenant_count_bounds",
        ),
    )
    op.create_index("ix_cells_id", "cells", ["id"])
    op.create_index("ix_cells_name", "cells", ["name"], unique=True)
    op.create_index("ix_cells_region", "cells", ["region"])
    op.create_index("ix_cells_status", "cells", ["status"])
    op.create_index("ix_cells_region_status", "cells", ["region", "status"])

    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("subdomain", sa.String(63), nullable=False),
        sa.Column("organization_name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("tier", TENANT_TIER, nullable=False),
        sa.Column("region", sa.String(64), nullable=False),
        sa.Column("required_compliance", sa.JSON(), nullable=False),
        sa.Column("status", TENANT_STATUS, nullable=False),
        sa.Column(
            "cell_id",
            sa.Uuid(),
            sa.ForeignKey("cells.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("cell_name", sa.String(128), nullable=True),
        sa.Column("cell_backend_pool", sa.String(128), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenants_id", "tenants", ["id"])
    op.create_index("ix_tenants_subdomain", "tenants", ["subdomain"], unique=True)
    op.create_index("ix_tenants_region", "tenants", ["region"])
    op.create_index("ix_tenants_status", "tenants", ["status"])
    op.create_index("ix_tenants_cell_id", "tenants", ["cell_id"])

    op.create_table(
        "tenant_migrations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.Uuid(),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("state", MIGRATION_STATE, nullable=False),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column("source_cell_id", sa.Uuid(), nullable=True),
        sa.Column("source_cell_name", sa.String(128), nullable=True),
        sa.Column("source_backend_pool", sa.String(128), nullable=True),
        sa.Column("source_tier", TENANT_TIER, nullable=False),
        sa.Column("target_cell_id", sa.Uuid(), nullable=False),
        sa.Column("target_cell_name", sa.String(128), nullable=False),
        sa.Column("target_backend_pool", sa.String(128), nullable=False),
        sa.Column(
            "target_provisioned", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column("target_tier", TENANT_TIER, nullable=False),
        sa.Column("error", sa.String(1024), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenant_migrations_id", "tenant_migrations", ["id"])
    op.create_index("ix_tenant_migrations_tenant_id", "tenant_migrations", ["tenant_id"])
    op.create_index("ix_tenant_migrations_state", "tenant_migrations", ["state"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("tenant_migrations")
    op.drop_table("tenants")
    op.drop_table("cells")

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
