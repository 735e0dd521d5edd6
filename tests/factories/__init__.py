"""Test data factories."""

from tests.factories.cells import CellRecordFactory, make_cell
from tests.factories.tenants import TenantRecordFactory, make_tenant


__all__ = [
    "CellRecordFactory",
    "TenantRecordFactory",
    "make_cell",
    "make_tenant",
]
