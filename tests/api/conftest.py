"""Fixtures for API tests.

The application runs with its service providers overridden so requests go
through the in-memory stores instead of PostgreSQL.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from app.modules.cells.dependencies import (
    get_assignment_engine,
    get_capacity_monitor,
    get_provisioner,
)
from app.modules.tenants.dependencies import get_migration_orchestrator, get_tenant_service


@pytest.fixture
async def app(engine, monitor, provisioner, tenant_service, orchestrator):
    """Create test application instance wired to the in-memory stores."""
    application = create_app()
    application.dependency_overrides.update(
        {
            get_assignment_engine: lambda: engine,
            get_capacity_monitor: lambda: monitor,
            get_provisioner: lambda: provisioner,
            get_tenant_service: lambda: tenant_service,
            get_migration_orchestrator: lambda: orchestrator,
        }
    )

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
