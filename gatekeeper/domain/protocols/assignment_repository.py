"""User role assignment and direct override repository protocols."""

from collections.abc import Collection
from datetime import datetime
from typing import Protocol
from uuid import UUID

from gatekeeper.domain.entities import PermissionOverride, RoleAssignment


class RoleAssignmentRepository(Protocol):
    """Persistence port for user role assignments.

    "Active" means not revoked and not expired at ``now``.
    """

    async def get_active(
        self, user_id: UUID, role_id: UUID, now: datetime
    ) -> RoleAssignment | None:
        ...

    async def list_active_for_user(
        self, user_id: UUID, now: datetime, *, for_update: bool = False
    ) -> list[RoleAssignment]:
        """Active assignments, oldest first; ``for_update`` locks the rows."""
        ...

    async def active_user_ids_for_roles(
        self, role_ids: Collection[UUID], now: datetime
    ) -> set[UUID]:
        ...

    async def active_user_counts(
        self, role_ids: Collection[UUID], now: datetime
    ) -> dict[UUID, int]:
        ...

    async def close_expired(self, user_id: UUID, role_id: UUID, now: datetime) -> None:
        """Mark expired-but-unrevoked assignments as revoked so the pair can be reused."""
        ...

    async def add(self, assignment: RoleAssignment) -> None:
        ...

    async def update(self, assignment: RoleAssignment) -> None:
        ...


class PermissionOverrideRepository(Protocol):
    """Persistence port for direct user permission overrides."""

    async def get(self, user_id: UUID, permission_id: UUID) -> PermissionOverride | None:
        ...

    async def list_for_user(
        self, user_id: UUID, *, include_expired: bool, now: datetime
    ) -> list[PermissionOverride]:
        ...

    async def upsert(self, override: PermissionOverride) -> None:
        """Insert, or replace the existing override for the same user and permission."""
        ...

    async def delete(self, user_id: UUID, permission_id: UUID) -> bool:
        ...
