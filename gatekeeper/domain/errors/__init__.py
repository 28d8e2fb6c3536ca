"""Domain errors package.

Usage:
    from gatekeeper.domain.errors import AuditError, CyclicHierarchyError
"""

from gatekeeper.domain.errors.audit_error import AuditError
from gatekeeper.domain.errors.authorization_errors import (
    CyclicHierarchyError,
    DuplicateKeyError,
    ForbiddenError,
    InactiveError,
    InUseError,
    LastRoleViolationError,
)

__all__ = [
    "AuditError",
    "CyclicHierarchyError",
    "DuplicateKeyError",
    "ForbiddenError",
    "InactiveError",
    "InUseError",
    "LastRoleViolationError",
]
