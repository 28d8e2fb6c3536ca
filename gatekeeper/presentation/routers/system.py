"""System router for non-versioned application endpoints.

Provides root, health and configuration endpoints that are not part of
the versioned API contract.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from gatekeeper.core.config import settings
from gatekeeper.core.container import get_cache, get_database
from gatekeeper.core.result import Success


system_router = APIRouter(tags=["System"])


@system_router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint - basic status check.

    Returns:
        dict[str, str]: Service name, status and version.
    """
    return {
        "message": settings.app_name,
        "status": "operational",
        "version": settings.app_version,
    }


@system_router.get("/health")
async def health() -> JSONResponse:
    """Health check for monitoring and load balancers.

    The database is required. Redis is reported but optional: the engine
    keeps answering checks from the database when the cache is down.

    Returns:
        JSONResponse: 200 when the database is reachable, 503 otherwise.
    """
    database_ok = await get_database().check_connection()

    cache_state = "disabled"
    if settings.cache_enabled:
        match await get_cache().ping():
            case Success():
                cache_state = "healthy"
            case _:
                cache_state = "unavailable"

    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if database_ok else "unhealthy",
            "database": "healthy" if database_ok else "unavailable",
            "cache": cache_state,
        },
    )


@system_router.get("/config")
async def get_config() -> JSONResponse:
    """Configuration debug endpoint (development only).

    Returns:
        JSONResponse: Sanitized configuration, or 403 outside development.
    """
    if not settings.is_development:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": "Config endpoint only available in development"},
        )

    return JSONResponse(
        content={
            "environment": settings.environment.value,
            "debug": settings.debug,
            "api": {
                "name": settings.app_name,
                "version": settings.app_version,
                "base_url": settings.api_base_url,
                "v1_prefix": settings.api_v1_prefix,
            },
            "database": {
                "url": "<redacted>",  # Never expose credentials
                "echo": settings.db_echo,
            },
            "cache": {
                "url": "<redacted>",
                "enabled": settings.cache_enabled,
                "ttl_seconds": settings.effective_permissions_ttl_seconds,
            },
            "authorization": {
                "admin_guard_enabled": settings.admin_guard_enabled,
                "admin_role_names": settings.admin_role_names,
                "max_check_many_items": settings.max_check_many_items,
            },
        }
    )
