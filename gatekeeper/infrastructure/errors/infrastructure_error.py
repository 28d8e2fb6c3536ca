"""Infrastructure layer error types.

Adapters catch library exceptions (redis) at their boundary and return these
errors inside ``Failure``. SQLAlchemy failures inside a unit of work
propagate; the HTTP layer turns them into a 500.
"""

from dataclasses import dataclass
from typing import Any

from gatekeeper.core.errors import DomainError
from gatekeeper.infrastructure.enums import InfrastructureErrorCode


@dataclass(frozen=True, slots=True, kw_only=True)
class InfrastructureError(DomainError):
    """Base infrastructure error.

    Attributes:
        infrastructure_code: Original infrastructure error code.
        details: Additional context (key, operation, original error).
    """

    infrastructure_code: InfrastructureErrorCode | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CacheError(InfrastructureError):
    """Wraps Redis/cache exceptions."""

    pass
