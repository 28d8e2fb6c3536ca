"""Cache protocols for the domain layer.

``CacheProtocol`` is the generic key-value port implemented by the Redis
adapter. ``EffectivePermissionCacheProtocol`` is the per-user authorization
cache built on top of it.

All operations return Result types; callers treat a cache Failure as a miss
(reads) or as "leave it to TTL" (invalidation).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from gatekeeper.core.errors import DomainError
from gatekeeper.core.result import Result
from gatekeeper.domain.entities import EffectivePermissionSet


class CacheProtocol(Protocol):
    """Key-value cache port (structural typing, no inheritance)."""

    async def get(self, key: str) -> Result[str | None, DomainError]:
        """Get value from cache; Success(None) when missing."""
        ...

    async def get_many(self, keys: list[str]) -> Result[list[str | None], DomainError]:
        """Get several values in one round trip, in key order."""
        ...

    async def set(
        self, key: str, value: str, ttl: int | None = None
    ) -> Result[None, DomainError]:
        """Set value with optional TTL in seconds."""
        ...

    async def delete(self, key: str) -> Result[bool, DomainError]:
        """Delete key; True when it existed."""
        ...

    async def delete_many(self, keys: list[str]) -> Result[int, DomainError]:
        """Delete keys; returns number removed."""
        ...

    async def increment(self, key: str, amount: int = 1) -> Result[int, DomainError]:
        """Atomically increment an integer key."""
        ...

    async def add_to_set(
        self, key: str, members: list[str], ttl: int | None = None
    ) -> Result[int, DomainError]:
        """Add members to a set, optionally refreshing its TTL."""
        ...

    async def set_members(self, key: str) -> Result[set[str], DomainError]:
        """Return all members of a set (empty when missing)."""
        ...

    async def remove_from_set(self, key: str, members: list[str]) -> Result[int, DomainError]:
        """Remove members from a set."""
        ...

    async def ping(self) -> Result[bool, DomainError]:
        """Health check."""
        ...


@dataclass(frozen=True, slots=True, kw_only=True)
class CacheToken:
    """Per-user generation and global epoch observed before resolving.

    A cached entry is only valid while both still match the current values.
    """

    generation: int
    epoch: int


@dataclass(frozen=True, slots=True, kw_only=True)
class CacheLookup:
    """Result of a cache read: the entry (if valid) and the current token."""

    permissions: EffectivePermissionSet | None
    token: CacheToken


class EffectivePermissionCacheProtocol(Protocol):
    """Per-user cache of resolved effective permissions."""

    async def lookup(self, user_id: UUID) -> Result[CacheLookup, DomainError]:
        """Read the user's entry together with the current token."""
        ...

    async def store(
        self, permissions: EffectivePermissionSet, token: CacheToken
    ) -> Result[bool, DomainError]:
        """Store a resolved set computed under ``token``.

        Returns Success(False) when the token is already stale.
        """
        ...

    async def invalidate_users(self, user_ids: Iterable[UUID]) -> Result[int, DomainError]:
        """Drop entries and bump generations for the given users."""
        ...

    async def users_for_role(self, role_id: UUID) -> Result[set[UUID], DomainError]:
        """Users whose cached entry depends on ``role_id``."""
        ...

    async def invalidate_all(self) -> Result[None, DomainError]:
        """Invalidate every entry (global epoch bump)."""
        ...
