"""Read-through authorization cache.

Wraps the per-user effective permission cache around the resolver:

    lookup -> hit: return snapshot
           -> miss: resolve from the database, store under the token
              observed before resolving, return

Correctness never depends on the cache. Any cache failure degrades to
direct resolution (reads) or to TTL expiry (invalidation), and is logged.

Invalidation is explicit and index-driven:
    - invalidate_users: bump generation + drop entry per user
    - invalidate_roles: users found in the database by the caller, plus the
      users the cache index recorded as depending on each role
    - invalidate_all: global epoch bump (catalog changes)
"""

from collections.abc import Collection, Iterable
from uuid import UUID

from gatekeeper.application.services.effective_permission_resolver import (
    EffectivePermissionResolver,
)
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.entities import EffectivePermissionSet
from gatekeeper.domain.protocols import (
    EffectivePermissionCacheProtocol,
    LoggerProtocol,
)


class AuthorizationCache:
    """Cache-aside access to effective permissions.

    Args:
        resolver: Computes effective permissions on a miss.
        cache: Per-user cache, or None when caching is disabled.
        logger: Structured logger.
    """

    def __init__(
        self,
        resolver: EffectivePermissionResolver,
        cache: EffectivePermissionCacheProtocol | None,
        logger: LoggerProtocol,
    ) -> None:
        self._resolver = resolver
        self._cache = cache
        self._logger = logger

    async def get(self, user_id: UUID) -> EffectivePermissionSet:
        """Return the user's effective permissions (cached when possible)."""
        if self._cache is None:
            return await self._resolver.resolve(user_id)

        match await self._cache.lookup(user_id):
            case Failure(error=error):
                self._logger.warning(
                    "effective_permissions_cache_unavailable",
                    user_id=str(user_id),
                    error_code=error.code.value,
                    error_message=error.message,
                )
                return await self._resolver.resolve(user_id)
            case Success(value=lookup) if lookup.permissions is not None:
                self._logger.debug("effective_permissions_cache_hit", user_id=str(user_id))
                return lookup.permissions
            case Success(value=lookup):
                token = lookup.token

        self._logger.debug("effective_permissions_cache_miss", user_id=str(user_id))
        permissions = await self._resolver.resolve(user_id)

        match await self._cache.store(permissions, token):
            case Failure(error=error):
                self._logger.warning(
                    "effective_permissions_cache_store_failed",
                    user_id=str(user_id),
                    error_code=error.code.value,
                    error_message=error.message,
                )
            case Success(value=False):
                # A mutation raced this resolution; the next check recomputes.
                self._logger.debug(
                    "effective_permissions_cache_store_skipped", user_id=str(user_id)
                )
            case Success():
                pass
        return permissions

    async def invalidate_users(self, user_ids: Iterable[UUID]) -> None:
        """Invalidate the given users' entries. Never raises."""
        unique_ids = set(user_ids)
        if self._cache is None or not unique_ids:
            return

        match await self._cache.invalidate_users(unique_ids):
            case Failure(error=error):
                self._logger.warning(
                    "cache_invalidation_failed",
                    scope="users",
                    user_count=len(unique_ids),
                    error_code=error.code.value,
                    error_message=error.message,
                )
            case Success(value=count):
                self._logger.debug("cache_invalidated", scope="users", user_count=count)

    async def invalidate_roles(
        self, role_ids: Collection[UUID], user_ids: Iterable[UUID] = ()
    ) -> set[UUID]:
        """Invalidate every user depending on ``role_ids``.

        Args:
            role_ids: Changed roles (and, for hierarchy changes, their descendants).
            user_ids: Affected users the caller enumerated from the database.

        Returns:
            The full set of invalidated user ids.
        """
        affected = set(user_ids)
        if self._cache is None:
            return affected

        for role_id in role_ids:
            match await self._cache.users_for_role(role_id):
                case Failure(error=error):
                    self._logger.warning(
                        "cache_index_read_failed",
                        role_id=str(role_id),
                        error_code=error.code.value,
                    )
                case Success(value=indexed):
                    affected |= indexed

        await self.invalidate_users(affected)
        return affected

    async def invalidate_all(self) -> None:
        """Invalidate every cached entry. Never raises."""
        if self._cache is None:
            return

        match await self._cache.invalidate_all():
            case Failure(error=error):
                self._logger.warning(
                    "cache_invalidation_failed",
                    scope="all",
                    error_code=error.code.value,
                    error_message=error.message,
                )
            case Success():
                self._logger.info("cache_flushed")
