"""Database implementation of AuditProtocol.

Writes append-only rows to ``audit_logs`` in a session of its own, opened
after the audited mutation has committed. A failing audit write therefore
can never roll back (or be rolled back with) the state change it describes.

Usage:
    adapter = DatabaseAuditAdapter(database)
    result = await adapter.record(
        event_type=AuditAction.ROLE_ASSIGNED,
        target_type="user",
        target_id=str(user_id),
        actor_id=actor_id,
        new_value={"role_id": str(role_id)},
    )
"""

from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.enums import AuditAction
from gatekeeper.domain.errors import AuditError
from gatekeeper.infrastructure.persistence.database import Database
from gatekeeper.infrastructure.persistence.models import AuditLog


class DatabaseAuditAdapter:
    """SQLAlchemy implementation of AuditProtocol.

    Attributes:
        database: Database used to open a dedicated session per record.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def record(
        self,
        *,
        event_type: AuditAction,
        target_type: str,
        target_id: str,
        actor_id: UUID | None = None,
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> Result[None, AuditError]:
        """Record an immutable audit entry.

        Returns:
            Success(None) if recorded, Failure(AuditError) if the write failed.
        """
        try:
            async with self.database.get_session() as session:
                session.add(
                    AuditLog(
                        event_type=event_type.value,
                        target_type=target_type,
                        target_id=target_id,
                        actor_id=actor_id,
                        old_value=old_value,
                        new_value=new_value,
                        correlation_id=correlation_id,
                    )
                )
            return Success(value=None)
        except SQLAlchemyError as e:
            return Failure(
                error=AuditError(
                    code=ErrorCode.AUDIT_RECORD_FAILED,
                    message=f"Failed to record audit log: {e}",
                    details={
                        "event_type": event_type.value,
                        "target_type": target_type,
                        "error_type": type(e).__name__,
                    },
                )
            )
