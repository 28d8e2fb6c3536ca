"""Condition kinds and operators for data-scoped permissions."""

from enum import Enum


class ConditionType(str, Enum):
    """Closed set of supported condition kinds."""

    OWN_ORGANIZATION = "own_organization"
    OWN_RECORDS = "own_records"
    DEPARTMENT = "department"
    CUSTOM = "custom"


class CustomOperator(str, Enum):
    """Operators accepted by ``custom`` conditions."""

    EQ = "eq"
    NE = "ne"
    IN = "in"
    NOT_IN = "not_in"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
