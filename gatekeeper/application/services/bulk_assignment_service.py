"""Bulk permission assignment.

Adds or removes many permissions on one role (as role grants) or one user
(as direct GRANT overrides) in a single transaction and a single audit
record. Entries that are already in the requested state are reported as
unchanged rather than rejected.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from uuid_extensions import uuid7

from gatekeeper.application.dtos import BulkAssignmentResult
from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.application.services.change_recorder import ChangeRecorder
from gatekeeper.application.services.mutation_support import (
    apply_grant_diff,
    invalidate_role_subtree,
    load_grantable_permissions,
    load_mutable_role,
)
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import DomainError, ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import PermissionOverride
from gatekeeper.domain.enums import AuditAction, BulkOperation, BulkTargetType, OverrideType
from gatekeeper.domain.events import (
    DirectPermissionRemoved,
    DirectPermissionSet,
    DomainEvent,
    RolePermissionsChanged,
)
from gatekeeper.domain.protocols import LoggerProtocol, UnitOfWork, UnitOfWorkFactory

MAX_BULK_ITEMS = 500


class BulkAssignmentService:
    """Bulk add/remove of permissions on a role or a user.

    Dependencies (injected via constructor):
        - UnitOfWorkFactory: Transactions and repositories
        - AuthorizationCache: Invalidation after commit
        - ChangeRecorder: Audit record + domain events
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

    async def bulk_assign(
        self,
        target_type: BulkTargetType,
        target_id: UUID,
        permission_ids: Sequence[UUID],
        operation: BulkOperation,
        *,
        actor_id: UUID | None = None,
        correlation_id: str | None = None,
    ) -> Result[BulkAssignmentResult, DomainError]:
        """Apply ``operation`` for every permission on the target.

        Returns:
            Success(BulkAssignmentResult) listing changed and unchanged ids.
            Failure(ValidationError) for an empty or oversized request.
            Failure(NotFoundError | ForbiddenError | InactiveError) from validation.
        """
        wanted = list(dict.fromkeys(permission_ids))
        if not wanted or len(wanted) > MAX_BULK_ITEMS:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message=f"Between 1 and {MAX_BULK_ITEMS} permission ids are required",
                    field="permission_ids",
                )
            )

        async with self._uow_factory() as uow:
            if operation is BulkOperation.ADD:
                match await load_grantable_permissions(uow, wanted):
                    case Failure(error=error):
                        return Failure(error=error)
                    case Success(value=permissions):
                        keys = {p.id: str(p.key) for p in permissions}
            else:
                keys = {p.id: str(p.key) for p in await uow.permissions.get_many(wanted)}

            if target_type is BulkTargetType.ROLE:
                match await load_mutable_role(uow, target_id):
                    case Failure(error=error):
                        return Failure(error=error)
                added, removed = await apply_grant_diff(
                    uow,
                    target_id,
                    add=wanted if operation is BulkOperation.ADD else (),
                    remove=wanted if operation is BulkOperation.REMOVE else (),
                    granted_by=actor_id,
                )
                changed = added or removed
            else:
                changed = await self._apply_to_user(uow, target_id, wanted, operation, actor_id)
            await uow.commit()

        events: list[DomainEvent] = []
        if target_type is BulkTargetType.ROLE:
            affected = (
                await invalidate_role_subtree(self._uow_factory, self._cache, target_id)
                if changed
                else set()
            )
            events.append(
                RolePermissionsChanged(
                    role_id=target_id,
                    added_permission_ids=added,
                    removed_permission_ids=removed,
                    affected_user_ids=sorted(affected, key=str),
                    changed_by=actor_id,
                    correlation_id=correlation_id,
                )
            )
        else:
            if changed:
                await self._cache.invalidate_users([target_id])
            for permission_id in changed:
                if operation is BulkOperation.ADD:
                    events.append(
                        DirectPermissionSet(
                            user_id=target_id,
                            permission_id=permission_id,
                            permission_key=keys.get(permission_id, str(permission_id)),
                            override_type=OverrideType.GRANT,
                            set_by=actor_id,
                            correlation_id=correlation_id,
                        )
                    )
                else:
                    events.append(
                        DirectPermissionRemoved(
                            user_id=target_id,
                            permission_id=permission_id,
                            permission_key=keys.get(permission_id, str(permission_id)),
                            removed_by=actor_id,
                            correlation_id=correlation_id,
                        )
                    )

        changed_ids = set(changed)
        result = BulkAssignmentResult(
            target_type=target_type,
            target_id=target_id,
            operation=operation,
            changed_permission_ids=list(changed),
            unchanged_permission_ids=[pid for pid in wanted if pid not in changed_ids],
        )
        self._logger.info(
            "bulk_permissions_assigned",
            target_type=target_type.value,
            target_id=str(target_id),
            operation=operation.value,
            changed_count=len(result.changed_permission_ids),
            unchanged_count=len(result.unchanged_permission_ids),
        )
        await self._recorder.record(
            action=AuditAction.BULK_PERMISSIONS_ASSIGNED,
            target_type=target_type.value,
            target_id=target_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            new_value={
                "operation": operation.value,
                "permission_ids": [str(pid) for pid in result.changed_permission_ids],
            },
            events=events if result.changed_permission_ids else [],
        )
        return Success(value=result)

    @staticmethod
    async def _apply_to_user(
        uow: UnitOfWork,
        user_id: UUID,
        permission_ids: list[UUID],
        operation: BulkOperation,
        actor_id: UUID | None,
    ) -> list[UUID]:
        now = datetime.now(UTC)
        changed: list[UUID] = []
        for permission_id in permission_ids:
            existing = await uow.overrides.get(user_id, permission_id)
            if operation is BulkOperation.REMOVE:
                if existing is not None and await uow.overrides.delete(user_id, permission_id):
                    changed.append(permission_id)
                continue
            if (
                existing is not None
                and existing.override_type is OverrideType.GRANT
                and not existing.conditions
                and existing.expires_at is None
            ):
                continue
            await uow.overrides.upsert(
                PermissionOverride(
                    id=uuid7(),
                    user_id=user_id,
                    permission_id=permission_id,
                    override_type=OverrideType.GRANT,
                    granted_by=actor_id,
                    granted_at=now,
                    reason="bulk assignment",
                )
            )
            changed.append(permission_id)
        return changed
