"""Permission template repository protocol."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from gatekeeper.domain.entities import PermissionTemplate


class PermissionTemplateRepository(Protocol):
    async def get(self, template_id: UUID) -> PermissionTemplate | None:
        ...

    async def get_by_name(self, name: str) -> PermissionTemplate | None:
        ...

    async def list(self) -> list[PermissionTemplate]:
        ...

    async def add(self, template: PermissionTemplate) -> None:
        ...
