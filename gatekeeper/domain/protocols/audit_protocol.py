"""Audit collaborator protocol (port).

The engine emits one audit record per mutating call. Recording is
best-effort: it happens after the mutation committed, and a Failure is
logged by the caller but never rolls back state.

Usage:
    result = await audit.record(
        event_type=AuditAction.ROLE_REVOKED,
        target_type="user",
        target_id=str(user_id),
        actor_id=actor_id,
        old_value={"role_id": str(role_id)},
        new_value={"reason": reason},
        correlation_id=correlation_id,
    )
"""

from typing import Any, Protocol
from uuid import UUID

from gatekeeper.core.result import Result
from gatekeeper.domain.enums import AuditAction
from gatekeeper.domain.errors import AuditError


class AuditProtocol(Protocol):
    """Protocol for audit trail systems.

    Implementations MUST be append-only and MUST return Failure instead of
    raising.
    """

    async def record(
        self,
        *,
        event_type: AuditAction,
        target_type: str,
        target_id: str,
        actor_id: UUID | None = None,
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> Result[None, AuditError]:
        """Record an immutable audit entry.

        Args:
            event_type: What happened.
            target_type: Kind of entity affected (permission, role, user, template).
            target_id: Identifier of the affected entity.
            actor_id: Who performed the change; None for system actions.
            old_value: State before the change, when meaningful.
            new_value: State after the change, when meaningful.
            correlation_id: Request correlation id.

        Returns:
            Success(None) when recorded, Failure(AuditError) otherwise.
        """
        ...
