"""Post-commit side effects of engine mutations.

Every mutating engine call, once its transaction has committed and the
affected cache entries were invalidated, emits exactly one audit record and
one domain event. Neither may undo or fail the mutation: audit failures are
logged, and the event bus is fail-open.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from gatekeeper.core.result import Failure
from gatekeeper.domain.enums import AuditAction
from gatekeeper.domain.events.base_event import DomainEvent
from gatekeeper.domain.protocols import (
    AuditProtocol,
    EventBusProtocol,
    LoggerProtocol,
)


class ChangeRecorder:
    """Audits and publishes a committed change.

    Args:
        audit: Audit collaborator.
        event_bus: Domain event bus (notification hook).
        logger: Structured logger.
    """

    def __init__(
        self,
        audit: AuditProtocol,
        event_bus: EventBusProtocol,
        logger: LoggerProtocol,
    ) -> None:
        self._audit = audit
        self._event_bus = event_bus
        self._logger = logger

    async def record(
        self,
        *,
        action: AuditAction,
        target_type: str,
        target_id: UUID | str,
        actor_id: UUID | None,
        correlation_id: str | None,
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
        event: DomainEvent | None = None,
        events: Sequence[DomainEvent] = (),
    ) -> None:
        """Record the audit entry, then publish ``event`` and ``events``. Never raises."""
        result = await self._audit.record(
            event_type=action,
            target_type=target_type,
            target_id=str(target_id),
            actor_id=actor_id,
            old_value=old_value,
            new_value=new_value,
            correlation_id=correlation_id,
        )
        if isinstance(result, Failure):
            self._logger.error(
                "audit_record_failed",
                audit_action=action.value,
                target_type=target_type,
                target_id=str(target_id),
                error_code=result.error.code.value,
                error_message=result.error.message,
            )

        for published in ([event] if event is not None else []) + list(events):
            await self._event_bus.publish(published)
