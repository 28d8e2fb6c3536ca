"""Infrastructure dependency factories.

Application-scoped singletons for core infrastructure services:
- Database (PostgreSQL / SQLite) and the unit-of-work factory
- Cache (Redis) and the effective-permission cache built on it
- Audit trail (database)
- Logging (console)
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from gatekeeper.core.config import settings
from gatekeeper.infrastructure.persistence.database import Database

if TYPE_CHECKING:
    from gatekeeper.domain.protocols import (
        AuditProtocol,
        CacheProtocol,
        EffectivePermissionCacheProtocol,
        LoggerProtocol,
        UnitOfWorkFactory,
    )


# ============================================================================
# Application-Scoped Dependencies (Singletons)
# ============================================================================


@lru_cache()
def get_database() -> Database:
    """Get database manager singleton (app-scoped).

    Returns:
        Database manager owning the engine and session factories.
    """
    return Database(
        database_url=settings.database_url,
        echo=settings.db_echo,
    )


@lru_cache()
def get_uow_factory() -> "UnitOfWorkFactory":
    """Get unit-of-work factory singleton (app-scoped).

    Usage:
        async with get_uow_factory()(read_only=True) as uow:
            role = await uow.roles.get_by_name("ADMIN")
    """
    from gatekeeper.infrastructure.persistence.unit_of_work import (
        SqlAlchemyUnitOfWorkFactory,
    )

    return SqlAlchemyUnitOfWorkFactory(get_database())


@lru_cache()
def get_cache() -> "CacheProtocol":
    """Get cache client singleton (app-scoped).

    Returns RedisAdapter with connection pooling. The pool is shared across
    the entire application.
    """
    from redis.asyncio import ConnectionPool, Redis

    from gatekeeper.infrastructure.cache.redis_adapter import RedisAdapter

    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=50,
        decode_responses=False,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    redis_client = Redis(connection_pool=pool)
    return RedisAdapter(redis_client=redis_client)


@lru_cache()
def get_effective_permission_cache() -> "EffectivePermissionCacheProtocol | None":
    """Get the effective-permission cache, or None when caching is disabled.

    With ``CACHE_ENABLED=false`` every check resolves from the database.
    """
    if not settings.cache_enabled:
        return None

    from gatekeeper.infrastructure.cache import CacheKeys, RedisEffectivePermissionCache

    return RedisEffectivePermissionCache(
        cache=get_cache(),
        keys=CacheKeys(prefix=settings.cache_key_prefix),
        ttl_seconds=settings.effective_permissions_ttl_seconds,
        logger=get_logger(),
    )


@lru_cache()
def get_audit() -> "AuditProtocol":
    """Get audit trail adapter singleton (app-scoped).

    The adapter opens its own session per record, so audit rows commit
    independently of the business transaction they describe.
    """
    from gatekeeper.infrastructure.audit import DatabaseAuditAdapter

    return DatabaseAuditAdapter(database=get_database())


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    Adapter selection is centralized here (composition root):
    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)
    """
    from gatekeeper.infrastructure.logging import ConsoleAdapter

    return ConsoleAdapter(
        use_json=not settings.is_development,
        level=settings.log_level,
    )
