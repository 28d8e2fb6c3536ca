"""Permission key value object and token validation.

A permission is identified by ``(resource, action)``; its string form is
``resource.action``. ``action`` may be the literal wildcard ``*``.

Token formats:
    resource:  ^[a-z][a-z0-9_]*$            (max 100)
    action:    ^([a-z][a-z0-9_]*|\\*)$       (max 50)
    role name: ^[A-Z][A-Z0-9_]{1,99}$
"""

import re
from dataclasses import dataclass

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import ValidationError
from gatekeeper.core.result import Failure, Result, Success

WILDCARD_ACTION = "*"

RESOURCE_PATTERN = re.compile(r"[a-z][a-z0-9_]*")
ACTION_PATTERN = re.compile(r"[a-z][a-z0-9_]*|\*")
ROLE_NAME_PATTERN = re.compile(r"[A-Z][A-Z0-9_]{1,99}")

MAX_RESOURCE_LENGTH = 100
MAX_ACTION_LENGTH = 50


@dataclass(frozen=True, slots=True)
class PermissionKey:
    """Immutable ``(resource, action)`` pair.

    Example:
        >>> key = PermissionKey("invoices", "read")
        >>> str(key)
        'invoices.read'
        >>> key.wildcard()
        PermissionKey(resource='invoices', action='*')
    """

    resource: str
    action: str

    def __str__(self) -> str:
        return f"{self.resource}.{self.action}"

    @property
    def is_wildcard(self) -> bool:
        """True for ``resource.*`` keys."""
        return self.action == WILDCARD_ACTION

    def wildcard(self) -> "PermissionKey":
        """Return the ``resource.*`` key covering this key."""
        return PermissionKey(self.resource, WILDCARD_ACTION)

    @classmethod
    def parse(cls, value: str) -> Result["PermissionKey", ValidationError]:
        """Parse ``resource.action`` into a validated key."""
        resource, sep, action = value.partition(".")
        if not sep:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message=f"Permission key '{value}' must have the form resource.action",
                    field="permission",
                )
            )
        return cls.create(resource, action)

    @classmethod
    def create(cls, resource: str, action: str) -> Result["PermissionKey", ValidationError]:
        """Validate both tokens and build the key."""
        match validate_resource(resource):
            case Failure() as failure:
                return failure
        match validate_action(action):
            case Failure() as failure:
                return failure
        return Success(value=cls(resource, action))


def validate_resource(resource: str) -> Result[str, ValidationError]:
    """Validate a resource token (lowercase, starts with a letter)."""
    if len(resource) > MAX_RESOURCE_LENGTH or not RESOURCE_PATTERN.fullmatch(resource):
        return Failure(
            error=ValidationError(
                code=ErrorCode.INVALID_RESOURCE,
                message=(
                    "Resource must be lowercase letters, digits and underscores, "
                    f"start with a letter, and be at most {MAX_RESOURCE_LENGTH} characters"
                ),
                field="resource",
                details={"resource": resource[:MAX_RESOURCE_LENGTH]},
            )
        )
    return Success(value=resource)


def validate_action(action: str) -> Result[str, ValidationError]:
    """Validate an action token; the wildcard ``*`` is accepted."""
    if len(action) > MAX_ACTION_LENGTH or not ACTION_PATTERN.fullmatch(action):
        return Failure(
            error=ValidationError(
                code=ErrorCode.INVALID_ACTION,
                message=(
                    "Action must be lowercase letters, digits and underscores "
                    f"(or '*'), and be at most {MAX_ACTION_LENGTH} characters"
                ),
                field="action",
                details={"action": action[:MAX_ACTION_LENGTH]},
            )
        )
    return Success(value=action)


def validate_role_name(name: str) -> Result[str, ValidationError]:
    """Validate a role name (UPPER_SNAKE_CASE, 2 to 100 characters)."""
    if not ROLE_NAME_PATTERN.fullmatch(name):
        return Failure(
            error=ValidationError(
                code=ErrorCode.INVALID_ROLE_NAME,
                message=(
                    "Role name must be uppercase letters, digits and underscores, "
                    "start with a letter, and be 2 to 100 characters"
                ),
                field="name",
                details={"name": name[:100]},
            )
        )
    return Success(value=name)
