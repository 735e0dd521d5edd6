"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from redis.exceptions import RedisError

from app.api.router import api_router
from app.config import settings
from app.core.database import async_engine
from app.core.errors.handlers import register_exception_handlers
from app.core.jobs.registry import close_arq_pool, init_arq_pool
from app.core.logging import RequestContextMiddleware, configure_logging


configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    # The API still serves placement requests without the job queue
    try:
        await init_arq_pool()
        logger.info("arq_pool_initialized")
    except (OSError, RedisError) as e:
        logger.warning("arq_pool_init_failed", error=str(e))

    yield

    # Shutdown
    logger.info("application_shutdown")

    # Close ARQ connection pool
    await close_arq_pool()
    logger.info("arq_pool_closed")

    await async_engine.dispose()
    logger.info("database_engine_disposed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Tenant placement and cell capacity management",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    # Tag requests with an ID and log completion
    app.add_middleware(RequestContextMiddleware)

    # Register exception handlers for RFC 7807 error responses
    register_exception_handlers(app)

    # Include API router
    app.include_router(api_router)

    return app
