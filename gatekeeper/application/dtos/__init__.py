"""Application layer data transfer objects.

DTOs returned by engine services that are not domain entities themselves
(pages, diffs, joined views).
"""

from gatekeeper.application.dtos.admin_dtos import (
    BulkAssignmentResult,
    PermissionPage,
    PermissionSetChange,
    RoleLineage,
    UserOverrideView,
    UserRoleView,
)

__all__ = [
    "BulkAssignmentResult",
    "PermissionPage",
    "PermissionSetChange",
    "RoleLineage",
    "UserOverrideView",
    "UserRoleView",
]
