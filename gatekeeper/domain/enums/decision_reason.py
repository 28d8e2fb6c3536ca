"""Machine-readable reasons attached to authorization decisions."""

from enum import Enum


class DecisionReason(str, Enum):
    """Why a check was allowed or denied."""

    GRANTED = "Granted"
    EXPLICIT_DENY = "ExplicitDeny"
    CONDITION_FAILED = "ConditionFailed"
    NO_GRANT = "NoGrant"
