"""Redis-backed per-user cache of effective permissions.

Key Patterns (see CacheKeys):
    - {prefix}:authz:eff:{user_id}        -> JSON snapshot, with TTL
    - {prefix}:authz:gen:{user_id}        -> per-user generation counter
    - {prefix}:authz:epoch                -> global epoch counter
    - {prefix}:authz:idx:users            -> Set of user ids with an entry
    - {prefix}:authz:idx:role:{role_id}   -> Set of user ids depending on a role

Invalidation never scans key patterns. Affected users are found through the
index sets (plus whatever the caller enumerated from the database), their
generation is bumped and their entry deleted. A snapshot records the
generation and epoch its reader observed before resolving; a snapshot whose
token no longer matches is treated as a miss, so a check that raced a
mutation can never resurrect pre-mutation state.
"""

import json
import math
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import DomainError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import EffectivePermission, EffectivePermissionSet
from gatekeeper.domain.enums import PermissionSource
from gatekeeper.domain.protocols import (
    CacheLookup,
    CacheProtocol,
    CacheToken,
    LoggerProtocol,
)
from gatekeeper.domain.value_objects import condition_to_dict, load_condition
from gatekeeper.infrastructure.cache.cache_keys import CacheKeys
from gatekeeper.infrastructure.enums import InfrastructureErrorCode
from gatekeeper.infrastructure.errors import CacheError


def _token_from(generation: str | None, epoch: str | None) -> CacheToken:
    return CacheToken(generation=int(generation or 0), epoch=int(epoch or 0))


def serialize_permission_set(
    permissions: EffectivePermissionSet, token: CacheToken
) -> dict[str, Any]:
    """Convert a resolved set into its cached JSON form."""
    return {
        "user_id": str(permissions.user_id),
        "generation": token.generation,
        "epoch": token.epoch,
        "computed_at": permissions.computed_at.isoformat(),
        "expires_at": permissions.expires_at.isoformat() if permissions.expires_at else None,
        "valid_until": (
            permissions.valid_until.isoformat() if permissions.valid_until else None
        ),
        "role_names": list(permissions.role_names),
        "role_ids": [str(r) for r in permissions.role_ids],
        "dependent_role_ids": [str(r) for r in permissions.dependent_role_ids],
        "entries": [
            {
                "key": entry.key,
                "permission_id": str(entry.permission_id) if entry.permission_id else None,
                "source": entry.source.value,
                "source_id": str(entry.source_id) if entry.source_id else None,
                "source_name": entry.source_name,
                "is_denied": entry.is_denied,
                "conditions": [condition_to_dict(c) for c in entry.conditions],
                "via_wildcard": entry.via_wildcard,
            }
            for entry in permissions.entries.values()
        ],
    }


def deserialize_permission_set(data: dict[str, Any]) -> EffectivePermissionSet:
    """Rebuild a resolved set from its cached JSON form.

    Raises:
        KeyError, TypeError, ValueError: On malformed data.
    """
    entries = {}
    for raw in data["entries"]:
        entry = EffectivePermission(
            key=raw["key"],
            permission_id=UUID(raw["permission_id"]) if raw["permission_id"] else None,
            source=PermissionSource(raw["source"]),
            source_id=UUID(raw["source_id"]) if raw["source_id"] else None,
            source_name=raw.get("source_name"),
            is_denied=bool(raw["is_denied"]),
            conditions=[load_condition(c) for c in raw.get("conditions", [])],
            via_wildcard=raw.get("via_wildcard"),
        )
        entries[entry.key] = entry
    return EffectivePermissionSet(
        user_id=UUID(data["user_id"]),
        entries=entries,
        role_names=list(data["role_names"]),
        role_ids=[UUID(r) for r in data["role_ids"]],
        dependent_role_ids=[UUID(r) for r in data["dependent_role_ids"]],
        computed_at=datetime.fromisoformat(data["computed_at"]),
        expires_at=datetime.fromisoformat(data["expires_at"]) if data["expires_at"] else None,
        valid_until=(
            datetime.fromisoformat(data["valid_until"]) if data.get("valid_until") else None
        ),
    )


class RedisEffectivePermissionCache:
    """Implements EffectivePermissionCacheProtocol on top of CacheProtocol.

    Note: Does NOT inherit from the protocol (uses structural typing).

    Args:
        cache: Key-value cache adapter (RedisAdapter).
        keys: Key builder.
        ttl_seconds: Lifetime of a cached snapshot (and of index sets).
        logger: Structured logger.
    """

    def __init__(
        self,
        cache: CacheProtocol,
        keys: CacheKeys,
        ttl_seconds: int,
        logger: LoggerProtocol,
    ) -> None:
        self._cache = cache
        self._keys = keys
        self._ttl = ttl_seconds
        self._logger = logger

    async def lookup(self, user_id: UUID) -> Result[CacheLookup, DomainError]:
        match await self._cache.get_many(
            [
                self._keys.effective_permissions(user_id),
                self._keys.generation(user_id),
                self._keys.epoch(),
            ]
        ):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=[raw, generation, epoch]):
                pass
            case Success(value=values):
                return Failure(
                    error=CacheError(
                        code=ErrorCode.CACHE_UNAVAILABLE,
                        infrastructure_code=InfrastructureErrorCode.CACHE_GET_ERROR,
                        message=f"Expected 3 cache values, got {len(values)}",
                        details={"user_id": str(user_id)},
                    )
                )

        token = _token_from(generation, epoch)
        if raw is None:
            return Success(value=CacheLookup(permissions=None, token=token))

        try:
            data = json.loads(raw)
            stale = data["generation"] != token.generation or data["epoch"] != token.epoch
            permissions = None if stale else deserialize_permission_set(data)
            if permissions is not None and permissions.valid_until is not None:
                stale = permissions.valid_until <= datetime.now(UTC)
                permissions = None if stale else permissions
        except (KeyError, TypeError, ValueError) as e:
            self._logger.warning(
                "effective_permissions_cache_corrupt",
                user_id=str(user_id),
                error_message=str(e),
            )
            permissions = None
            stale = False

        if stale:
            self._logger.debug("effective_permissions_cache_stale", user_id=str(user_id))
        return Success(value=CacheLookup(permissions=permissions, token=token))

    async def store(
        self, permissions: EffectivePermissionSet, token: CacheToken
    ) -> Result[bool, DomainError]:
        user_id = permissions.user_id
        match await self._cache.get_many([self._keys.generation(user_id), self._keys.epoch()]):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=[generation, epoch]):
                if _token_from(generation, epoch) != token:
                    self._logger.debug(
                        "effective_permissions_cache_store_skipped",
                        user_id=str(user_id),
                        reason="stale_token",
                    )
                    return Success(value=False)

        now = datetime.now(UTC)
        ttl = self._ttl
        if permissions.valid_until is not None:
            ttl = min(ttl, math.ceil((permissions.valid_until - now).total_seconds()))
        if ttl <= 0:
            self._logger.debug(
                "effective_permissions_cache_store_skipped",
                user_id=str(user_id),
                reason="already_lapsed",
            )
            return Success(value=False)

        permissions.expires_at = now + timedelta(seconds=ttl)
        payload = json.dumps(serialize_permission_set(permissions, token))

        # Index first: an entry must never exist without its index membership.
        member = [str(user_id)]
        for role_id in permissions.dependent_role_ids:
            match await self._cache.add_to_set(self._keys.role_users(role_id), member, self._ttl):
                case Failure(error=error):
                    return Failure(error=error)
        match await self._cache.add_to_set(self._keys.cached_users(), member):
            case Failure(error=error):
                return Failure(error=error)

        match await self._cache.set(self._keys.effective_permissions(user_id), payload, ttl=ttl):
            case Failure(error=error):
                return Failure(error=error)
        return Success(value=True)

    async def invalidate_users(self, user_ids: Iterable[UUID]) -> Result[int, DomainError]:
        unique_ids = sorted(set(user_ids), key=str)
        if not unique_ids:
            return Success(value=0)

        for user_id in unique_ids:
            match await self._cache.increment(self._keys.generation(user_id)):
                case Failure(error=error):
                    return Failure(error=error)

        match await self._cache.delete_many(
            [self._keys.effective_permissions(u) for u in unique_ids]
        ):
            case Failure(error=error):
                return Failure(error=error)

        # Index cleanup is cosmetic; stale members only cause extra invalidations.
        await self._cache.remove_from_set(
            self._keys.cached_users(), [str(u) for u in unique_ids]
        )
        return Success(value=len(unique_ids))

    async def users_for_role(self, role_id: UUID) -> Result[set[UUID], DomainError]:
        match await self._cache.set_members(self._keys.role_users(role_id)):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=members):
                return Success(value={UUID(m) for m in members})

    async def invalidate_all(self) -> Result[None, DomainError]:
        match await self._cache.increment(self._keys.epoch()):
            case Failure(error=error):
                return Failure(error=error)
        await self._cache.delete(self._keys.cached_users())
        return Success(value=None)
