"""Domain events package."""

from gatekeeper.domain.events.authorization_events import (
    DirectPermissionRemoved,
    DirectPermissionSet,
    PermissionCatalogChanged,
    RoleAssigned,
    RoleHierarchyChanged,
    RolePermissionsChanged,
    RoleRevoked,
)
from gatekeeper.domain.events.base_event import DomainEvent

__all__ = [
    "DirectPermissionRemoved",
    "DirectPermissionSet",
    "DomainEvent",
    "PermissionCatalogChanged",
    "RoleAssigned",
    "RoleHierarchyChanged",
    "RolePermissionsChanged",
    "RoleRevoked",
]
