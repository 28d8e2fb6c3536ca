"""Override types for direct user and role-level permission overrides."""

from enum import Enum


class OverrideType(str, Enum):
    """Whether an override grants or denies a permission.

    DENY always wins over any GRANT for the same permission key.
    """

    GRANT = "GRANT"
    DENY = "DENY"
