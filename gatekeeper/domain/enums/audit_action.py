"""Audit action types for administrative changes.

Every mutating engine call emits exactly one audit record tagged with one of
these actions.

Usage:
    from gatekeeper.domain.enums import AuditAction

    await audit.record(
        event_type=AuditAction.ROLE_ASSIGNED,
        target_type="user",
        target_id=str(user_id),
        actor_id=actor_id,
        new_value={"role_id": str(role_id)},
        correlation_id=correlation_id,
    )
"""

from enum import Enum


class AuditAction(str, Enum):
    """Audit action types.

    String Enum:
        Inherits from str for easy serialization and database storage.
        Values are snake_case strings for consistency.
    """

    # =========================================================================
    # Permission catalog
    # =========================================================================
    PERMISSION_CREATED = "permission_created"
    PERMISSION_UPDATED = "permission_updated"
    PERMISSION_DEACTIVATED = "permission_deactivated"

    # =========================================================================
    # Roles and hierarchy
    # =========================================================================
    ROLE_CREATED = "role_created"
    ROLE_UPDATED = "role_updated"
    ROLE_REPARENTED = "role_reparented"
    ROLE_DEACTIVATED = "role_deactivated"
    ROLE_PERMISSIONS_UPDATED = "role_permissions_updated"
    ROLE_PERMISSION_DENIED = "role_permission_denied"
    ROLE_PERMISSION_DENY_REMOVED = "role_permission_deny_removed"

    # =========================================================================
    # User assignments and direct overrides
    # =========================================================================
    ROLE_ASSIGNED = "role_assigned"
    ROLE_REVOKED = "role_revoked"
    USER_PERMISSION_SET = "user_permission_set"
    USER_PERMISSION_REMOVED = "user_permission_removed"
    BULK_PERMISSIONS_ASSIGNED = "bulk_permissions_assigned"

    # =========================================================================
    # Templates
    # =========================================================================
    TEMPLATE_CREATED = "template_created"
    TEMPLATE_APPLIED = "template_applied"
