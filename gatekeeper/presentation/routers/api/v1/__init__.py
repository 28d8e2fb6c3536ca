"""API v1 routers.

Resources:
    /api/v1/authorization/checks            - Single permission check
    /api/v1/authorization/batch-checks      - Batch permission check
    /api/v1/users/{id}/effective-permissions - Resolved permission set
    /api/v1/permissions                     - Permission catalog (admin)
    /api/v1/roles                           - Role graph (admin)
    /api/v1/users/{id}/roles                - Role assignments (admin)
    /api/v1/users/{id}/permissions          - Direct overrides (admin)
    /api/v1/bulk-permission-assignments     - Bulk assignment (admin)
    /api/v1/permission-templates            - Permission templates (admin)
"""

from fastapi import APIRouter

from gatekeeper.core.config import settings
from gatekeeper.presentation.routers.api.v1 import (
    authorization,
    bulk_permission_assignments,
    permission_templates,
    permissions,
    roles,
    users,
)

v1_router = APIRouter(prefix=settings.api_v1_prefix)
v1_router.include_router(authorization.router)
v1_router.include_router(permissions.router)
v1_router.include_router(roles.router)
v1_router.include_router(users.router)
v1_router.include_router(bulk_permission_assignments.router)
v1_router.include_router(permission_templates.router)

__all__ = [
    "v1_router",
]
