"""Enums for bulk assignment and template application."""

from enum import Enum


class BulkTargetType(str, Enum):
    """Target of a bulk permission assignment."""

    ROLE = "role"
    USER = "user"


class BulkOperation(str, Enum):
    """Whether a bulk assignment adds or removes permissions."""

    ADD = "add"
    REMOVE = "remove"


class TemplateApplyMode(str, Enum):
    """How a permission template is applied to a role.

    MERGE: add template permissions to the role's existing grants.
    REPLACE: the role's grants become exactly the template's permissions.
    """

    MERGE = "merge"
    REPLACE = "replace"
