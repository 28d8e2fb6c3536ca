"""PermissionTemplateRepository - SQLAlchemy implementation."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities import PermissionTemplate, as_utc
from gatekeeper.infrastructure.persistence.models import (
    PermissionTemplateItemModel,
    PermissionTemplateModel,
)


class PermissionTemplateRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, template_id: UUID) -> PermissionTemplate | None:
        model = await self._session.get(PermissionTemplateModel, template_id)
        return None if model is None else await self._to_entity(model)

    async def get_by_name(self, name: str) -> PermissionTemplate | None:
        result = await self._session.execute(
            select(PermissionTemplateModel).where(PermissionTemplateModel.name == name)
        )
        model = result.scalar_one_or_none()
        return None if model is None else await self._to_entity(model)

    async def list(self) -> list[PermissionTemplate]:
        result = await self._session.execute(
            select(PermissionTemplateModel).order_by(PermissionTemplateModel.name)
        )
        return [await self._to_entity(m) for m in result.scalars().all()]

    async def add(self, template: PermissionTemplate) -> None:
        self._session.add(
            PermissionTemplateModel(
                id=template.id,
                name=template.name,
                description=template.description,
                created_by=template.created_by,
                created_at=template.created_at,
            )
        )
        await self._session.flush()
        self._session.add_all(
            PermissionTemplateItemModel(template_id=template.id, permission_id=pid)
            for pid in template.permission_ids
        )
        await self._session.flush()

    async def _to_entity(self, model: PermissionTemplateModel) -> PermissionTemplate:
        result = await self._session.execute(
            select(PermissionTemplateItemModel.permission_id).where(
                PermissionTemplateItemModel.template_id == model.id
            )
        )
        return PermissionTemplate(
            id=model.id,
            name=model.name,
            description=model.description,
            permission_ids=list(result.scalars().all()),
            created_by=model.created_by,
            created_at=as_utc(model.created_at),
        )
