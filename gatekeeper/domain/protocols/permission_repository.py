"""Permission catalog repository protocol (port)."""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import Protocol
from uuid import UUID

from gatekeeper.domain.entities import Permission, PermissionUsage


class PermissionRepository(Protocol):
    """Persistence port for the permission catalog."""

    async def get(self, permission_id: UUID) -> Permission | None:
        """Find a permission by id (active or not)."""
        ...

    async def get_many(self, permission_ids: Collection[UUID]) -> list[Permission]:
        """Find permissions by id; unknown ids are skipped."""
        ...

    async def get_active_by_key(self, resource: str, action: str) -> Permission | None:
        """Find the active permission for ``(resource, action)``."""
        ...

    async def list_active_by_resources(self, resources: Collection[str]) -> list[Permission]:
        """All active permissions for the given resources (wildcard expansion)."""
        ...

    async def list(
        self,
        *,
        module: str | None = None,
        resource: str | None = None,
        search: str | None = None,
        include_inactive: bool = False,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Permission], int]:
        """Filtered page of permissions plus the total match count."""
        ...

    async def add(self, permission: Permission) -> None:
        ...

    async def update(self, permission: Permission) -> None:
        ...

    async def usage(self, permission_id: UUID, now: datetime) -> PermissionUsage:
        """Count roles (grants or denies) and users (unexpired overrides) referencing it."""
        ...

    async def detach(self, permission_id: UUID) -> None:
        """Remove every role grant, role deny and user override for it."""
        ...
