"""Domain protocols (ports) package.

Re-exports are ONLY for protocols defined in this package.

Usage:
    from gatekeeper.domain.protocols import AuditProtocol, UnitOfWork
"""

# Service protocols
from gatekeeper.domain.protocols.audit_protocol import AuditProtocol
from gatekeeper.domain.protocols.cache_protocol import (
    CacheLookup,
    CacheProtocol,
    CacheToken,
    EffectivePermissionCacheProtocol,
)
from gatekeeper.domain.protocols.event_bus_protocol import EventBusProtocol, EventHandler
from gatekeeper.domain.protocols.logger_protocol import LoggerProtocol

# Repository protocols
from gatekeeper.domain.protocols.assignment_repository import (
    PermissionOverrideRepository,
    RoleAssignmentRepository,
)
from gatekeeper.domain.protocols.permission_repository import PermissionRepository
from gatekeeper.domain.protocols.role_repository import (
    RolePermissionRepository,
    RoleRepository,
)
from gatekeeper.domain.protocols.template_repository import PermissionTemplateRepository
from gatekeeper.domain.protocols.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    # Service protocols
    "AuditProtocol",
    "CacheLookup",
    "CacheProtocol",
    "CacheToken",
    "EffectivePermissionCacheProtocol",
    "EventBusProtocol",
    "EventHandler",
    "LoggerProtocol",
    # Repository protocols
    "PermissionOverrideRepository",
    "PermissionRepository",
    "PermissionTemplateRepository",
    "RoleAssignmentRepository",
    "RolePermissionRepository",
    "RoleRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
