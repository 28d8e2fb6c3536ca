"""Domain enums package.

Usage:
    from gatekeeper.domain.enums import OverrideType, CheckMode
"""

from gatekeeper.domain.enums.admin_operations import (
    BulkOperation,
    BulkTargetType,
    TemplateApplyMode,
)
from gatekeeper.domain.enums.audit_action import AuditAction
from gatekeeper.domain.enums.check_mode import CheckMode
from gatekeeper.domain.enums.condition_type import ConditionType, CustomOperator
from gatekeeper.domain.enums.decision_reason import DecisionReason
from gatekeeper.domain.enums.override_type import OverrideType
from gatekeeper.domain.enums.permission_source import PermissionSource

__all__ = [
    "AuditAction",
    "BulkOperation",
    "BulkTargetType",
    "CheckMode",
    "ConditionType",
    "CustomOperator",
    "DecisionReason",
    "OverrideType",
    "PermissionSource",
    "TemplateApplyMode",
]
