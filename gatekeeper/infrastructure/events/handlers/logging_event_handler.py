"""Logging event handler for authorization domain events.

Subscribed by the container to every authorization event so that each
committed change leaves one structured log line, independent of whether
the audit write succeeded.

Structured Fields:
    - event_id: UUID for event correlation and deduplication
    - occurred_at: ISO 8601 timestamp (UTC)
    - correlation_id: Request trace id (when available)
    - affected_user_count: Users whose cache entries were invalidated
"""

from gatekeeper.domain.events import (
    DirectPermissionRemoved,
    DirectPermissionSet,
    DomainEvent,
    PermissionCatalogChanged,
    RoleAssigned,
    RoleHierarchyChanged,
    RolePermissionsChanged,
    RoleRevoked,
)
from gatekeeper.domain.protocols import EventBusProtocol, LoggerProtocol


class LoggingEventHandler:
    """Event handler for structured logging of authorization events.

    Attributes:
        _logger: Logger protocol implementation (from container).
    """

    def __init__(self, logger: LoggerProtocol) -> None:
        self._logger = logger

    def subscribe_all(self, event_bus: EventBusProtocol) -> None:
        """Register one handler per authorization event type."""
        event_bus.subscribe(RoleAssigned, self.handle_role_assigned)
        event_bus.subscribe(RoleRevoked, self.handle_role_revoked)
        event_bus.subscribe(DirectPermissionSet, self.handle_direct_permission_set)
        event_bus.subscribe(DirectPermissionRemoved, self.handle_direct_permission_removed)
        event_bus.subscribe(RolePermissionsChanged, self.handle_role_permissions_changed)
        event_bus.subscribe(RoleHierarchyChanged, self.handle_role_hierarchy_changed)
        event_bus.subscribe(PermissionCatalogChanged, self.handle_permission_catalog_changed)

    def _base(self, event: DomainEvent) -> dict[str, str | None]:
        return {
            "event_id": str(event.event_id),
            "occurred_at": event.occurred_at.isoformat(),
            "correlation_id": event.correlation_id,
        }

    # =========================================================================
    # Assignment events
    # =========================================================================

    async def handle_role_assigned(self, event: RoleAssigned) -> None:
        self._logger.info(
            "role_assigned",
            **self._base(event),
            user_id=str(event.user_id),
            role_id=str(event.role_id),
            role_name=event.role_name,
        )

    async def handle_role_revoked(self, event: RoleRevoked) -> None:
        self._logger.info(
            "role_revoked",
            **self._base(event),
            user_id=str(event.user_id),
            role_id=str(event.role_id),
            role_name=event.role_name,
        )

    async def handle_direct_permission_set(self, event: DirectPermissionSet) -> None:
        self._logger.info(
            "direct_permission_set",
            **self._base(event),
            user_id=str(event.user_id),
            permission_key=event.permission_key,
            override_type=event.override_type.value,
        )

    async def handle_direct_permission_removed(self, event: DirectPermissionRemoved) -> None:
        self._logger.info(
            "direct_permission_removed",
            **self._base(event),
            user_id=str(event.user_id),
            permission_key=event.permission_key,
        )

    # =========================================================================
    # Role and catalog events
    # =========================================================================

    async def handle_role_permissions_changed(self, event: RolePermissionsChanged) -> None:
        self._logger.info(
            "role_permissions_changed",
            **self._base(event),
            role_id=str(event.role_id),
            added_count=len(event.added_permission_ids),
            removed_count=len(event.removed_permission_ids),
            affected_user_count=len(event.affected_user_ids),
        )

    async def handle_role_hierarchy_changed(self, event: RoleHierarchyChanged) -> None:
        self._logger.info(
            "role_hierarchy_changed",
            **self._base(event),
            role_id=str(event.role_id),
            old_parent_role_id=str(event.old_parent_role_id) if event.old_parent_role_id else None,
            new_parent_role_id=str(event.new_parent_role_id) if event.new_parent_role_id else None,
            affected_user_count=len(event.affected_user_ids),
        )

    async def handle_permission_catalog_changed(self, event: PermissionCatalogChanged) -> None:
        self._logger.info(
            "permission_catalog_changed",
            **self._base(event),
            permission_key=event.permission_key,
            change=event.change,
        )
