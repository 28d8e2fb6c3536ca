"""Main FastAPI application entry point.

Run with:
    uvicorn gatekeeper.main:app --reload
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gatekeeper.core.config import settings
from gatekeeper.core.container import get_database, get_logger
from gatekeeper.presentation.routers.api.middleware import TraceMiddleware
from gatekeeper.presentation.routers.api.v1 import v1_router
from gatekeeper.presentation.routers.api.v1.errors import register_exception_handlers
from gatekeeper.presentation.routers.system import system_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager.

    Startup creates tables directly in development and testing (production
    runs Alembic migrations). Shutdown disposes the connection pool.
    """
    database = get_database()
    if settings.is_development or settings.is_testing:
        await database.create_all()
    get_logger().info(
        "application_started",
        environment=settings.environment.value,
        cache_enabled=settings.cache_enabled,
    )

    yield

    await database.close()
    get_logger().info("application_stopped")


app = FastAPI(
    title=settings.app_name,
    description="Role-based authorization engine with hierarchical roles and direct overrides",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    debug=settings.debug,
    lifespan=lifespan,
)

# Wire trace middleware (request correlation)
app.add_middleware(TraceMiddleware)

# Register global exception handlers (RFC 7807 error responses)
register_exception_handlers(app)

app.include_router(system_router)
app.include_router(v1_router)
