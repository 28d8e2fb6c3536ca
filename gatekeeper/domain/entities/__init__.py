"""Domain entities."""

from gatekeeper.domain.entities.authorization_decision import (
    AuthorizationDecision,
    CheckItem,
    CheckManyResult,
)
from gatekeeper.domain.entities.effective_permissions import (
    EffectivePermission,
    EffectivePermissionSet,
)
from gatekeeper.domain.entities.permission import Permission, PermissionUsage
from gatekeeper.domain.entities.permission_override import (
    PermissionOverride,
    RolePermissionDeny,
)
from gatekeeper.domain.entities.role import (
    Role,
    RoleHierarchyEdge,
    RolePermissionView,
    RoleSummary,
)
from gatekeeper.domain.entities.role_assignment import RoleAssignment, as_utc
from gatekeeper.domain.entities.template import PermissionTemplate

__all__ = [
    "AuthorizationDecision",
    "CheckItem",
    "CheckManyResult",
    "EffectivePermission",
    "EffectivePermissionSet",
    "Permission",
    "PermissionOverride",
    "PermissionTemplate",
    "PermissionUsage",
    "Role",
    "RoleAssignment",
    "RoleHierarchyEdge",
    "RolePermissionDeny",
    "RolePermissionView",
    "RoleSummary",
    "as_utc",
]
