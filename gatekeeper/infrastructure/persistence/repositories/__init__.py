"""SQLAlchemy repository adapters."""

from gatekeeper.infrastructure.persistence.repositories.assignment_repository import (
    PermissionOverrideRepository,
    RoleAssignmentRepository,
)
from gatekeeper.infrastructure.persistence.repositories.permission_repository import (
    PermissionRepository,
)
from gatekeeper.infrastructure.persistence.repositories.role_repository import (
    RolePermissionRepository,
    RoleRepository,
)
from gatekeeper.infrastructure.persistence.repositories.template_repository import (
    PermissionTemplateRepository,
)

__all__ = [
    "PermissionOverrideRepository",
    "PermissionRepository",
    "PermissionTemplateRepository",
    "RoleAssignmentRepository",
    "RolePermissionRepository",
    "RoleRepository",
]
