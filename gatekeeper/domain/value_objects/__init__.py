"""Domain value objects."""

from gatekeeper.domain.value_objects.conditions import (
    Condition,
    Custom,
    Department,
    OwnOrganization,
    OwnRecords,
    UnknownCondition,
    condition_to_dict,
    evaluate_condition,
    first_failed_condition,
    load_condition,
    normalize_context,
    parse_condition,
    parse_conditions,
)
from gatekeeper.domain.value_objects.permission_key import (
    WILDCARD_ACTION,
    PermissionKey,
    validate_action,
    validate_resource,
    validate_role_name,
)

__all__ = [
    "Condition",
    "Custom",
    "Department",
    "OwnOrganization",
    "OwnRecords",
    "PermissionKey",
    "UnknownCondition",
    "WILDCARD_ACTION",
    "condition_to_dict",
    "evaluate_condition",
    "first_failed_condition",
    "load_condition",
    "normalize_context",
    "parse_condition",
    "parse_conditions",
    "validate_action",
    "validate_resource",
    "validate_role_name",
]
