"""Domain-level error codes (machine-readable).

Error codes follow ENTITY_ACTION_REASON naming convention and are exposed
unchanged in HTTP problem-details responses.

Categories:
- Validation errors (INVALID_*, VALIDATION_*)
- Resource errors (*_NOT_FOUND)
- State errors (*_INACTIVE, *_IMMUTABLE)
- Conflict errors (*_ALREADY_EXISTS, *_ALREADY_ACTIVE, *_IN_USE)
- Business rule violations (LAST_ROLE_VIOLATION, CYCLIC_HIERARCHY)
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain-level error codes (machine-readable)."""

    # Validation errors
    VALIDATION_FAILED = "validation_failed"
    INVALID_RESOURCE = "invalid_resource"
    INVALID_ACTION = "invalid_action"
    INVALID_ROLE_NAME = "invalid_role_name"
    INVALID_CONDITION = "invalid_condition"

    # Resource errors
    PERMISSION_NOT_FOUND = "permission_not_found"
    ROLE_NOT_FOUND = "role_not_found"
    ASSIGNMENT_NOT_FOUND = "assignment_not_found"
    OVERRIDE_NOT_FOUND = "override_not_found"
    TEMPLATE_NOT_FOUND = "template_not_found"

    # State errors
    ROLE_INACTIVE = "role_inactive"
    PERMISSION_INACTIVE = "permission_inactive"
    SYSTEM_ROLE_IMMUTABLE = "system_role_immutable"
    SYSTEM_PERMISSION_IMMUTABLE = "system_permission_immutable"

    # Conflict errors
    PERMISSION_ALREADY_EXISTS = "permission_already_exists"
    ROLE_ALREADY_EXISTS = "role_already_exists"
    TEMPLATE_ALREADY_EXISTS = "template_already_exists"
    ASSIGNMENT_ALREADY_ACTIVE = "assignment_already_active"
    PERMISSION_IN_USE = "permission_in_use"
    ROLE_IN_USE = "role_in_use"

    # Business rule violations
    LAST_ROLE_VIOLATION = "last_role_violation"
    CYCLIC_HIERARCHY = "cyclic_hierarchy"

    # Authorization errors
    PERMISSION_DENIED = "permission_denied"

    # Audit trail errors
    AUDIT_RECORD_FAILED = "audit_record_failed"

    # Infrastructure errors (mapped from InfrastructureErrorCode)
    CACHE_UNAVAILABLE = "cache_unavailable"
