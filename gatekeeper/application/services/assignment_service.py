"""Assignment store service.

User role assignments (temporal, revocable) and direct user permission
overrides (GRANT or DENY, optionally conditional, temporal).

Business Rules:
    - At most one active assignment per (user, role)
    - A user always keeps at least one active role (last-role protection)
    - Revocation requires a reason (5-500 characters)
    - At most one override per (user, permission); setting again replaces it
    - Conditions only on GRANT overrides, validated against the permission

Every mutation commits, invalidates the user's cache entry, then audits
and publishes, in that order, before returning.
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from uuid_extensions import uuid7

from gatekeeper.application.dtos import UserOverrideView, UserRoleView
from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.application.services.change_recorder import ChangeRecorder
from gatekeeper.application.services.mutation_support import (
    load_grantable_permissions,
    role_not_found,
)
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import ConflictError, DomainError, NotFoundError, ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import PermissionOverride, Role, RoleAssignment
from gatekeeper.domain.enums import AuditAction, OverrideType
from gatekeeper.domain.errors import InactiveError, LastRoleViolationError
from gatekeeper.domain.events import (
    DirectPermissionRemoved,
    DirectPermissionSet,
    RoleAssigned,
    RoleRevoked,
)
from gatekeeper.domain.protocols import LoggerProtocol, UnitOfWorkFactory
from gatekeeper.domain.value_objects import condition_to_dict, parse_conditions

MIN_REASON_LENGTH = 5
MAX_REASON_LENGTH = 500


def _future_or_none(expires_at: datetime | None, now: datetime) -> Result[None, ValidationError]:
    if expires_at is None:
        return Success(value=None)
    if expires_at.tzinfo is None or expires_at <= now:
        return Failure(
            error=ValidationError(
                code=ErrorCode.VALIDATION_FAILED,
                message="expires_at must be a timezone-aware time in the future",
                field="expires_at",
            )
        )
    return Success(value=None)


def _already_active(role: Role) -> Failure[ConflictError]:
    return Failure(
        error=ConflictError(
            code=ErrorCode.ASSIGNMENT_ALREADY_ACTIVE,
            message=f"User already holds role {role.name}",
            resource_type="RoleAssignment",
            conflicting_field="role_id",
        )
    )


def _override_snapshot(override: PermissionOverride, permission_key: str) -> dict[str, Any]:
    return {
        "permission": permission_key,
        "type": override.override_type.value,
        "conditions": [condition_to_dict(c) for c in override.conditions],
        "expires_at": override.expires_at.isoformat() if override.expires_at else None,
        "reason": override.reason,
    }


class AssignmentService:
    """Writes to user role assignments and direct overrides.

    Dependencies (injected via constructor):
        - UnitOfWorkFactory: Transactions and repositories
        - AuthorizationCache: Per-user invalidation after commit
        - ChangeRecorder: Audit record + domain event
        - LoggerProtocol: Structured logging
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        cache: AuthorizationCache,
        recorder: ChangeRecorder,
        logger: LoggerProtocol,
    ) -> None:
        self._uow_factory = uow_factory
        self._cache = cache
        self._recorder = recorder
        self._logger = logger

    # =========================================================================
    # Role assignments
    # =========================================================================

    async def assign_role(
        self,
        user_id: UUID,
        role_id: UUID,
        *,
        expires_at: datetime | None = None,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[RoleAssignment, DomainError]:
        """Assign a role to a user.

        Returns:
            Success(RoleAssignment) when assigned.
            Failure(NotFoundError | InactiveError) for a missing or deactivated role.
            Failure(ConflictError) when an active assignment already exists.
        """
        now = datetime.now(UTC)
        match _future_or_none(expires_at, now):
            case Failure(error=error):
                return Failure(error=error)

        async with self._uow_factory() as uow:
            role = await uow.roles.get(role_id)
            if role is None:
                return role_not_found(role_id)
            if not role.is_active:
                return Failure(
                    error=InactiveError(
                        code=ErrorCode.ROLE_INACTIVE,
                        message=f"Role {role.name} is deactivated",
                        resource_type="Role",
                        resource_id=str(role_id),
                    )
                )

            # Expired rows still count against the (user, role) unique index.
            await uow.assignments.close_expired(user_id, role_id, now)
            if await uow.assignments.get_active(user_id, role_id, now) is not None:
                self._logger.warning(
                    "role_assign_rejected",
                    user_id=str(user_id),
                    role_id=str(role_id),
                    reason="already_active",
                )
                return _already_active(role)

            assignment = RoleAssignment(
                id=uuid7(),
                user_id=user_id,
                role_id=role_id,
                granted_at=now,
                granted_by=actor_id,
                expires_at=expires_at,
            )
            try:
                await uow.assignments.add(assignment)
                await uow.commit()
            except IntegrityError:
                # A concurrent assignment of the same pair committed first.
                self._logger.warning(
                    "role_assign_rejected",
                    user_id=str(user_id),
                    role_id=str(role_id),
                    reason="already_active",
                )
                return _already_active(role)

        await self._cache.invalidate_users([user_id])
        self._logger.info(
            "role_assigned",
            user_id=str(user_id),
            role_id=str(role_id),
            role_name=role.name,
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        await self._recorder.record(
            action=AuditAction.ROLE_ASSIGNED,
            target_type="user",
            target_id=user_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            new_value={
                "role_id": str(role_id),
                "role_name": role.name,
                "expires_at": expires_at.isoformat() if expires_at else None,
            },
            event=RoleAssigned(
                user_id=user_id,
                role_id=role_id,
                role_name=role.name,
                assigned_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=assignment)

    async def revoke_role(
        self,
        user_id: UUID,
        role_id: UUID,
        reason: str,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[RoleAssignment, DomainError]:
        """Revoke a user's active role assignment.

        Returns:
            Success(RoleAssignment) with revocation fields set.
            Failure(ValidationError) for a missing or out-of-range reason.
            Failure(NotFoundError) when no active assignment exists.
            Failure(LastRoleViolationError) when it is the user's only active role.
        """
        reason = (reason or "").strip()
        if not MIN_REASON_LENGTH <= len(reason) <= MAX_REASON_LENGTH:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message=(
                        f"Revocation reason must be {MIN_REASON_LENGTH}-"
                        f"{MAX_REASON_LENGTH} characters"
                    ),
                    field="reason",
                )
            )

        now = datetime.now(UTC)
        async with self._uow_factory() as uow:
            active = await uow.assignments.list_active_for_user(user_id, now, for_update=True)
            assignment = next((a for a in active if a.role_id == role_id), None)
            if assignment is None:
                return Failure(
                    error=NotFoundError(
                        code=ErrorCode.ASSIGNMENT_NOT_FOUND,
                        message="User has no active assignment for this role",
                        resource_type="RoleAssignment",
                        resource_id=f"{user_id}:{role_id}",
                    )
                )
            if len(active) <= 1:
                self._logger.warning(
                    "role_revoke_rejected",
                    user_id=str(user_id),
                    role_id=str(role_id),
                    reason="last_role",
                )
                return Failure(
                    error=LastRoleViolationError(
                        code=ErrorCode.LAST_ROLE_VIOLATION,
                        message="Cannot revoke the user's only active role",
                        user_id=str(user_id),
                        role_id=str(role_id),
                    )
                )

            role = await uow.roles.get(role_id)
            assignment.revoke(reason=reason, revoked_by=actor_id)
            await uow.assignments.update(assignment)
            await uow.commit()

        role_name = role.name if role is not None else str(role_id)
        await self._cache.invalidate_users([user_id])
        self._logger.info(
            "role_revoked", user_id=str(user_id), role_id=str(role_id), role_name=role_name
        )
        await self._recorder.record(
            action=AuditAction.ROLE_REVOKED,
            target_type="user",
            target_id=user_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value={"role_id": str(role_id), "role_name": role_name},
            new_value={"reason": reason},
            event=RoleRevoked(
                user_id=user_id,
                role_id=role_id,
                role_name=role_name,
                reason=reason,
                revoked_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=assignment)

    async def get_user_roles(self, user_id: UUID) -> list[UserRoleView]:
        """Active assignments with their roles, oldest first."""
        now = datetime.now(UTC)
        async with self._uow_factory(read_only=True) as uow:
            assignments = await uow.assignments.list_active_for_user(user_id, now)
            roles = {r.id: r for r in await uow.roles.get_many({a.role_id for a in assignments})}
        return [
            UserRoleView(assignment=a, role=roles[a.role_id])
            for a in assignments
            if a.role_id in roles
        ]

    # =========================================================================
    # Direct overrides
    # =========================================================================

    async def set_direct_permission(
        self,
        user_id: UUID,
        permission_id: UUID,
        override_type: OverrideType,
        *,
        conditions: Sequence[Mapping[str, Any]] = (),
        expires_at: datetime | None = None,
        reason: str | None = None,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[PermissionOverride, DomainError]:
        """Create or replace the user's override for a permission (upsert).

        Returns:
            Success(PermissionOverride) as stored.
            Failure(ValidationError) for invalid conditions or expiry.
            Failure(NotFoundError | InactiveError) for the permission.
        """
        now = datetime.now(UTC)
        match _future_or_none(expires_at, now):
            case Failure(error=error):
                return Failure(error=error)

        if conditions and override_type is OverrideType.DENY:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.INVALID_CONDITION,
                    message="Conditions are only supported on GRANT overrides",
                    field="conditions",
                )
            )

        async with self._uow_factory() as uow:
            match await load_grantable_permissions(uow, [permission_id]):
                case Failure(error=error):
                    return Failure(error=error)
                case Success(value=[permission]):
                    pass

            match parse_conditions(
                conditions,
                supports_conditions=permission.supports_conditions,
                allowed_types=permission.allowed_condition_types,
            ):
                case Failure(error=error):
                    self._logger.warning(
                        "user_permission_rejected",
                        user_id=str(user_id),
                        permission=str(permission.key),
                        error_code=error.code.value,
                    )
                    return Failure(error=error)
                case Success(value=parsed):
                    pass

            previous = await uow.overrides.get(user_id, permission_id)
            override = PermissionOverride(
                id=uuid7(),
                user_id=user_id,
                permission_id=permission_id,
                override_type=override_type,
                conditions=parsed,
                expires_at=expires_at,
                granted_by=actor_id,
                granted_at=now,
                reason=reason,
            )
            await uow.overrides.upsert(override)
            await uow.commit()

        key = str(permission.key)
        await self._cache.invalidate_users([user_id])
        self._logger.info(
            "user_permission_set",
            user_id=str(user_id),
            permission=key,
            override_type=override_type.value,
            condition_count=len(parsed),
            replaced=previous is not None,
        )
        await self._recorder.record(
            action=AuditAction.USER_PERMISSION_SET,
            target_type="user",
            target_id=user_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value=_override_snapshot(previous, key) if previous else None,
            new_value=_override_snapshot(override, key),
            event=DirectPermissionSet(
                user_id=user_id,
                permission_id=permission_id,
                permission_key=key,
                override_type=override_type,
                set_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=override)

    async def remove_direct_permission(
        self,
        user_id: UUID,
        permission_id: UUID,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[None, DomainError]:
        async with self._uow_factory() as uow:
            previous = await uow.overrides.get(user_id, permission_id)
            if previous is None or not await uow.overrides.delete(user_id, permission_id):
                return Failure(
                    error=NotFoundError(
                        code=ErrorCode.OVERRIDE_NOT_FOUND,
                        message="User has no override for this permission",
                        resource_type="PermissionOverride",
                        resource_id=f"{user_id}:{permission_id}",
                    )
                )
            permission = await uow.permissions.get(permission_id)
            await uow.commit()

        key = str(permission.key) if permission is not None else str(permission_id)
        await self._cache.invalidate_users([user_id])
        self._logger.info("user_permission_removed", user_id=str(user_id), permission=key)
        await self._recorder.record(
            action=AuditAction.USER_PERMISSION_REMOVED,
            target_type="user",
            target_id=user_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            old_value=_override_snapshot(previous, key),
            event=DirectPermissionRemoved(
                user_id=user_id,
                permission_id=permission_id,
                permission_key=key,
                removed_by=actor_id,
                correlation_id=correlation_id,
            ),
        )
        return Success(value=None)

    async def get_user_overrides(
        self, user_id: UUID, *, include_expired: bool = False
    ) -> list[UserOverrideView]:
        now = datetime.now(UTC)
        async with self._uow_factory(read_only=True) as uow:
            overrides = await uow.overrides.list_for_user(
                user_id, include_expired=include_expired, now=now
            )
            permissions = {
                p.id: p
                for p in await uow.permissions.get_many({o.permission_id for o in overrides})
            }
        return [
            UserOverrideView(
                override=o,
                permission=permissions[o.permission_id],
                is_expired=not o.is_active(now),
            )
            for o in overrides
            if o.permission_id in permissions
        ]
