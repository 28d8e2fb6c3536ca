"""Role, role hierarchy (closure) and role grant repository protocols."""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol
from uuid import UUID

from gatekeeper.domain.entities import Role, RoleHierarchyEdge, RolePermissionDeny


class RoleRepository(Protocol):
    """Persistence port for roles and the hierarchy closure table."""

    async def get(self, role_id: UUID) -> Role | None:
        ...

    async def get_many(self, role_ids: Collection[UUID]) -> list[Role]:
        ...

    async def get_by_name(self, name: str) -> Role | None:
        ...

    async def list(
        self,
        *,
        include_system: bool = True,
        include_inactive: bool = False,
        search: str | None = None,
    ) -> list[Role]:
        ...

    async def add(self, role: Role) -> None:
        ...

    async def update(self, role: Role) -> None:
        ...

    async def lock(self, role_ids: Collection[UUID]) -> None:
        """Hold write locks on the given role rows until the transaction ends."""
        ...

    async def ancestors(self, role_ids: Collection[UUID]) -> list[RoleHierarchyEdge]:
        """Closure rows whose descendant is one of ``role_ids`` (self-edges included).

        Ordered by descendant, then depth ascending.
        """
        ...

    async def descendants(self, role_id: UUID) -> list[RoleHierarchyEdge]:
        """Closure rows whose ancestor is ``role_id`` (self-edge included)."""
        ...

    async def add_edges(self, edges: Collection[RoleHierarchyEdge]) -> None:
        ...

    async def delete_inherited_edges(self, descendant_ids: Collection[UUID]) -> None:
        """Delete every non-self closure row whose descendant is in ``descendant_ids``."""
        ...


class RolePermissionRepository(Protocol):
    """Persistence port for role grants and role-level denies."""

    async def permission_ids_for_role(self, role_id: UUID) -> set[UUID]:
        ...

    async def grants_for_roles(self, role_ids: Collection[UUID]) -> list[tuple[UUID, UUID]]:
        """``(role_id, permission_id)`` grant pairs for the given roles."""
        ...

    async def add(
        self, role_id: UUID, permission_ids: Collection[UUID], granted_by: UUID | None = None
    ) -> None:
        ...

    async def remove(self, role_id: UUID, permission_ids: Collection[UUID]) -> None:
        ...

    async def denies_for_roles(self, role_ids: Collection[UUID]) -> list[RolePermissionDeny]:
        ...

    async def add_deny(self, deny: RolePermissionDeny) -> None:
        ...

    async def remove_deny(self, role_id: UUID, permission_id: UUID) -> bool:
        """Remove a deny; False when none existed."""
        ...
