"""PermissionRepository - SQLAlchemy implementation of the catalog port.

Maps between domain ``Permission`` entities and ``PermissionModel`` rows.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities import Permission, PermissionUsage, as_utc
from gatekeeper.domain.enums import ConditionType
from gatekeeper.infrastructure.persistence.models import (
    PermissionModel,
    PermissionTemplateItemModel,
    RolePermissionModel,
    RolePermissionOverrideModel,
    UserPermissionModel,
)


class PermissionRepository:
    """SQLAlchemy implementation of PermissionRepository protocol.

    Does NOT inherit from the protocol (structural typing).
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, permission_id: UUID) -> Permission | None:
        model = await self._session.get(PermissionModel, permission_id)
        return None if model is None else self._to_entity(model)

    async def get_many(self, permission_ids: Collection[UUID]) -> list[Permission]:
        if not permission_ids:
            return []
        stmt = select(PermissionModel).where(PermissionModel.id.in_(list(permission_ids)))
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def get_active_by_key(self, resource: str, action: str) -> Permission | None:
        stmt = select(PermissionModel).where(
            PermissionModel.resource == resource,
            PermissionModel.action == action,
            PermissionModel.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return None if model is None else self._to_entity(model)

    async def list_active_by_resources(self, resources: Collection[str]) -> list[Permission]:
        if not resources:
            return []
        stmt = (
            select(PermissionModel)
            .where(
                PermissionModel.resource.in_(list(resources)),
                PermissionModel.is_active.is_(True),
            )
            .order_by(PermissionModel.resource, PermissionModel.action)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

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
        stmt = select(PermissionModel)
        if not include_inactive:
            stmt = stmt.where(PermissionModel.is_active.is_(True))
        if module is not None:
            stmt = stmt.where(PermissionModel.module == module)
        if resource is not None:
            stmt = stmt.where(PermissionModel.resource == resource)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    PermissionModel.resource.ilike(pattern),
                    PermissionModel.action.ilike(pattern),
                    PermissionModel.display_name.ilike(pattern),
                    PermissionModel.description.ilike(pattern),
                )
            )

        total = await self._session.scalar(select(func.count()).select_from(stmt.subquery()))

        stmt = (
            stmt.order_by(PermissionModel.resource, PermissionModel.action)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()], int(total or 0)

    async def add(self, permission: Permission) -> None:
        self._session.add(self._to_model(permission))
        await self._session.flush()

    async def update(self, permission: Permission) -> None:
        model = await self._session.get(PermissionModel, permission.id)
        if model is None:
            return
        model.display_name = permission.display_name
        model.description = permission.description
        model.module = permission.module
        model.is_active = permission.is_active
        model.depends_on = [str(pid) for pid in permission.depends_on]
        model.supports_conditions = permission.supports_conditions
        model.allowed_condition_types = [t.value for t in permission.allowed_condition_types]
        model.updated_at = permission.updated_at
        await self._session.flush()

    async def usage(self, permission_id: UUID, now: datetime) -> PermissionUsage:
        granting = await self._session.execute(
            select(distinct(RolePermissionModel.role_id)).where(
                RolePermissionModel.permission_id == permission_id
            )
        )
        denying = await self._session.execute(
            select(distinct(RolePermissionOverrideModel.role_id)).where(
                RolePermissionOverrideModel.permission_id == permission_id
            )
        )
        role_ids = set(granting.scalars().all()) | set(denying.scalars().all())

        user_count = await self._session.scalar(
            select(func.count(distinct(UserPermissionModel.user_id))).where(
                UserPermissionModel.permission_id == permission_id,
                or_(
                    UserPermissionModel.expires_at.is_(None),
                    UserPermissionModel.expires_at > now,
                ),
            )
        )
        return PermissionUsage(role_count=len(role_ids), user_count=int(user_count or 0))

    async def detach(self, permission_id: UUID) -> None:
        for model in (
            RolePermissionModel,
            RolePermissionOverrideModel,
            UserPermissionModel,
            PermissionTemplateItemModel,
        ):
            await self._session.execute(delete(model).where(model.permission_id == permission_id))

    @staticmethod
    def _to_entity(model: PermissionModel) -> Permission:
        return Permission(
            id=model.id,
            resource=model.resource,
            action=model.action,
            display_name=model.display_name,
            description=model.description,
            module=model.module,
            is_system=model.is_system,
            is_active=model.is_active,
            depends_on=[UUID(str(pid)) for pid in model.depends_on or []],
            supports_conditions=model.supports_conditions,
            allowed_condition_types=[
                ConditionType(t) for t in model.allowed_condition_types or []
            ],
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    @staticmethod
    def _to_model(permission: Permission) -> PermissionModel:
        return PermissionModel(
            id=permission.id,
            resource=permission.resource,
            action=permission.action,
            display_name=permission.display_name,
            description=permission.description,
            module=permission.module,
            is_system=permission.is_system,
            is_active=permission.is_active,
            depends_on=[str(pid) for pid in permission.depends_on],
            supports_conditions=permission.supports_conditions,
            allowed_condition_types=[t.value for t in permission.allowed_condition_types],
            created_at=permission.created_at,
            updated_at=permission.updated_at,
        )
