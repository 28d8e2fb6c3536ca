"""Database models for the persistence layer.

Domain entities (dataclasses) live in gatekeeper/domain/entities/; these
SQLAlchemy models are mapped to and from them by the repositories.
"""

from gatekeeper.infrastructure.persistence.models.assignment import (
    UserPermissionModel,
    UserRoleModel,
)
from gatekeeper.infrastructure.persistence.models.audit_log import AuditLog
from gatekeeper.infrastructure.persistence.models.permission import PermissionModel
from gatekeeper.infrastructure.persistence.models.role import (
    RoleHierarchyModel,
    RoleModel,
    RolePermissionModel,
    RolePermissionOverrideModel,
)
from gatekeeper.infrastructure.persistence.models.template import (
    PermissionTemplateItemModel,
    PermissionTemplateModel,
)

__all__ = [
    "AuditLog",
    "PermissionModel",
    "PermissionTemplateItemModel",
    "PermissionTemplateModel",
    "RoleHierarchyModel",
    "RoleModel",
    "RolePermissionModel",
    "RolePermissionOverrideModel",
    "UserPermissionModel",
    "UserRoleModel",
]
