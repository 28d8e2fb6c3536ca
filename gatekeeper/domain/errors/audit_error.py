"""Audit trail error types.

Usage:
    from gatekeeper.domain.errors import AuditError

    return Failure(error=AuditError(
        code=ErrorCode.AUDIT_RECORD_FAILED,
        message="Failed to record audit entry: database connection lost",
    ))
"""

from dataclasses import dataclass

from gatekeeper.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class AuditError(DomainError):
    """Audit system failure (database error, connection loss, etc.)."""

    pass  # Inherits all fields from DomainError
