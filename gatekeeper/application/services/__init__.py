"""Authorization engine application services.

Usage:
    from gatekeeper.application.services import AuthorizationService
"""

from gatekeeper.application.services.assignment_service import AssignmentService
from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.application.services.authorization_service import AuthorizationService
from gatekeeper.application.services.bulk_assignment_service import BulkAssignmentService
from gatekeeper.application.services.change_recorder import ChangeRecorder
from gatekeeper.application.services.effective_permission_resolver import (
    EffectivePermissionResolver,
    merge_effective_permissions,
)
from gatekeeper.application.services.permission_catalog_service import (
    PermissionCatalogService,
)
from gatekeeper.application.services.role_graph_service import RoleGraphService
from gatekeeper.application.services.template_service import TemplateService

__all__ = [
    "AssignmentService",
    "AuthorizationCache",
    "AuthorizationService",
    "BulkAssignmentService",
    "ChangeRecorder",
    "EffectivePermissionResolver",
    "PermissionCatalogService",
    "RoleGraphService",
    "TemplateService",
    "merge_effective_permissions",
]
