"""Fixtures for tests against a real PostgreSQL database.

Run with ``pytest -m integration``. Each test gets a session inside an
outer transaction that is rolled back afterwards; repository commits only
release savepoints.
"""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import settings
from app.core.database import Base
from app.modules.cells.models import Cell  # noqa: F401
from app.modules.tenants.models import Tenant, TenantMigration  # noqa: F401


TEST_DATABASE_URL = settings.async_database_url.replace("/cellplacer", "/cellplacer_test")


@pytest.fixture
async def db_engine():
    """Create test database engine with a fresh schema."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session whose work is rolled back after the test."""
    async with db_engine.connect() as conn:
        await conn.begin()

        factory = async_sessionmaker(
            bind=conn,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            join_transaction_mode="create_savepoint",
        )
        async with factory() as session:
            yield session

        await conn.rollback()
