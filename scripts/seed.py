#!/usr/bin/env python
"""
Bootstrap regions with cells for development.

Placement never creates the first cell of a region, so a fresh database
needs at least one cell per region before tenants can be created.
"""

import argparse
import asyncio
import sys


# Add src to path for imports
sys.path.insert(0, "src")

from app.config import settings
from app.core.database import async_session_factory
from app.modules.cells.models import CellStatus, CellType
from app.modules.cells.policy import PlacementPolicy
from app.modules.cells.provisioning import CellProvisioner, LoggingProvisioningNotifier
from app.modules.cells.repos import CellRepository
from app.modules.cells.schemas import CellProvisionRequest


DEMO_CELLS = [
    CellProvisionRequest(region="eastus", cell_type=CellType.SHARED),
    CellProvisionRequest(
        region="eastus", cell_type=CellType.SHARED, compliance_features=["HIPAA", "SOC2"]
    ),
    CellProvisionRequest(
        region="eastus", cell_type=CellType.DEDICATED, compliance_features=["HIPAA"]
    ),
    CellProvisionRequest(region="westus", cell_type=CellType.SHARED),
    CellProvisionRequest(
        region="westeurope", cell_type=CellType.SHARED, compliance_features=["GDPR"]
    ),
]


async def seed(requests: list[CellProvisionRequest]) -> None:
    """Provision cells for every region that has none yet."""
    policy = PlacementPolicy.from_settings()
    async with async_session_factory() as session:
        cells = CellRepository(session)
        provisioner = CellProvisioner(cells, LoggingProvisioningNotifier(), policy)
        seeded: set[str] = set()

        for request in requests:
            if request.region not in seeded:
                existing = await cells.query(request.region, CellStatus.ACTIVE)
                if existing:
                    print(f"Region already has {len(existing)} active cells: {request.region}")
                    continue
            cell = await provisioner.provision(request.model_copy(update={"reason": "seed"}))
            seeded.add(request.region)
            print(f"Created cell: {cell.name} ({cell.cell_type}, {cell.status})")


async def main(scenario: str) -> None:
    """Run the seeding based on scenario."""
    if scenario == "default":
        await seed([CellProvisionRequest(region=settings.default_region)])
    elif scenario == "demo":
        await seed(DEMO_CELLS)
    else:
        print(f"Unknown scenario: {scenario}")
        print("Available scenarios: default, demo")
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed database with bootstrap cells")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help="Seed scenario to run (default, demo)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario))
