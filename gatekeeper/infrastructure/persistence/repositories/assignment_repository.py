"""Role assignment and direct override repositories (SQLAlchemy)."""

from collections.abc import Collection
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, delete, distinct, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities import PermissionOverride, RoleAssignment, as_utc
from gatekeeper.domain.enums import OverrideType
from gatekeeper.domain.value_objects import condition_to_dict, load_condition
from gatekeeper.infrastructure.persistence.models import UserPermissionModel, UserRoleModel


def _active_assignment(now: datetime):
    return and_(
        UserRoleModel.revoked_at.is_(None),
        or_(UserRoleModel.expires_at.is_(None), UserRoleModel.expires_at > now),
    )


class RoleAssignmentRepository:
    """SQLAlchemy implementation of RoleAssignmentRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_active(
        self, user_id: UUID, role_id: UUID, now: datetime
    ) -> RoleAssignment | None:
        result = await self._session.execute(
            select(UserRoleModel).where(
                UserRoleModel.user_id == user_id,
                UserRoleModel.role_id == role_id,
                _active_assignment(now),
            )
        )
        model = result.scalars().first()
        return None if model is None else self._to_entity(model)

    async def list_active_for_user(
        self, user_id: UUID, now: datetime, *, for_update: bool = False
    ) -> list[RoleAssignment]:
        stmt = (
            select(UserRoleModel)
            .where(UserRoleModel.user_id == user_id, _active_assignment(now))
            .order_by(UserRoleModel.granted_at)
        )
        if for_update:
            # Serializes concurrent revocations for the same user (no-op on SQLite).
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def active_user_ids_for_roles(
        self, role_ids: Collection[UUID], now: datetime
    ) -> set[UUID]:
        if not role_ids:
            return set()
        result = await self._session.execute(
            select(distinct(UserRoleModel.user_id)).where(
                UserRoleModel.role_id.in_(list(role_ids)), _active_assignment(now)
            )
        )
        return set(result.scalars().all())

    async def active_user_counts(
        self, role_ids: Collection[UUID], now: datetime
    ) -> dict[UUID, int]:
        if not role_ids:
            return {}
        result = await self._session.execute(
            select(UserRoleModel.role_id, func.count(distinct(UserRoleModel.user_id)))
            .where(UserRoleModel.role_id.in_(list(role_ids)), _active_assignment(now))
            .group_by(UserRoleModel.role_id)
        )
        return {role_id: int(count) for role_id, count in result.all()}

    async def close_expired(self, user_id: UUID, role_id: UUID, now: datetime) -> None:
        await self._session.execute(
            update(UserRoleModel)
            .where(
                UserRoleModel.user_id == user_id,
                UserRoleModel.role_id == role_id,
                UserRoleModel.revoked_at.is_(None),
                UserRoleModel.expires_at.is_not(None),
                UserRoleModel.expires_at <= now,
            )
            .values(revoked_at=now, revoke_reason="expired")
        )

    async def add(self, assignment: RoleAssignment) -> None:
        self._session.add(
            UserRoleModel(
                id=assignment.id,
                user_id=assignment.user_id,
                role_id=assignment.role_id,
                granted_at=assignment.granted_at,
                granted_by=assignment.granted_by,
                expires_at=assignment.expires_at,
                revoked_at=assignment.revoked_at,
                revoked_by=assignment.revoked_by,
                revoke_reason=assignment.revoke_reason,
            )
        )
        await self._session.flush()

    async def update(self, assignment: RoleAssignment) -> None:
        model = await self._session.get(UserRoleModel, assignment.id)
        if model is None:
            return
        model.expires_at = assignment.expires_at
        model.revoked_at = assignment.revoked_at
        model.revoked_by = assignment.revoked_by
        model.revoke_reason = assignment.revoke_reason
        await self._session.flush()

    @staticmethod
    def _to_entity(model: UserRoleModel) -> RoleAssignment:
        return RoleAssignment(
            id=model.id,
            user_id=model.user_id,
            role_id=model.role_id,
            granted_at=as_utc(model.granted_at),
            granted_by=model.granted_by,
            expires_at=as_utc(model.expires_at) if model.expires_at else None,
            revoked_at=as_utc(model.revoked_at) if model.revoked_at else None,
            revoked_by=model.revoked_by,
            revoke_reason=model.revoke_reason,
        )


class PermissionOverrideRepository:
    """SQLAlchemy implementation of PermissionOverrideRepository protocol."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID, permission_id: UUID) -> PermissionOverride | None:
        model = await self._get_model(user_id, permission_id)
        return None if model is None else self._to_entity(model)

    async def list_for_user(
        self, user_id: UUID, *, include_expired: bool, now: datetime
    ) -> list[PermissionOverride]:
        stmt = select(UserPermissionModel).where(UserPermissionModel.user_id == user_id)
        if not include_expired:
            stmt = stmt.where(
                or_(
                    UserPermissionModel.expires_at.is_(None),
                    UserPermissionModel.expires_at > now,
                )
            )
        result = await self._session.execute(stmt.order_by(UserPermissionModel.granted_at))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def upsert(self, override: PermissionOverride) -> None:
        model = await self._get_model(override.user_id, override.permission_id)
        conditions = [condition_to_dict(c) for c in override.conditions]
        if model is None:
            self._session.add(
                UserPermissionModel(
                    id=override.id,
                    user_id=override.user_id,
                    permission_id=override.permission_id,
                    override_type=override.override_type.value,
                    conditions=conditions,
                    expires_at=override.expires_at,
                    granted_by=override.granted_by,
                    granted_at=override.granted_at,
                    reason=override.reason,
                )
            )
        else:
            override.id = model.id
            model.override_type = override.override_type.value
            model.conditions = conditions
            model.expires_at = override.expires_at
            model.granted_by = override.granted_by
            model.granted_at = override.granted_at
            model.reason = override.reason
        await self._session.flush()

    async def delete(self, user_id: UUID, permission_id: UUID) -> bool:
        result = await self._session.execute(
            delete(UserPermissionModel).where(
                UserPermissionModel.user_id == user_id,
                UserPermissionModel.permission_id == permission_id,
            )
        )
        return bool(result.rowcount)

    async def _get_model(self, user_id: UUID, permission_id: UUID) -> UserPermissionModel | None:
        result = await self._session.execute(
            select(UserPermissionModel).where(
                UserPermissionModel.user_id == user_id,
                UserPermissionModel.permission_id == permission_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: UserPermissionModel) -> PermissionOverride:
        return PermissionOverride(
            id=model.id,
            user_id=model.user_id,
            permission_id=model.permission_id,
            override_type=OverrideType(model.override_type),
            conditions=[load_condition(raw) for raw in model.conditions or []],
            expires_at=as_utc(model.expires_at) if model.expires_at else None,
            granted_by=model.granted_by,
            granted_at=as_utc(model.granted_at),
            reason=model.reason,
        )
