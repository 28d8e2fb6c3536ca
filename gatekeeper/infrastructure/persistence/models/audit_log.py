"""Audit log database model.

Append-only: rows are inserted by the audit adapter and never updated or
deleted by the engine.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel


class AuditLog(BaseModel):
    """Audit log model - IMMUTABLE (no updated_at).

    Fields:
        event_type: What happened (``role_assigned``)
        target_type: Kind of entity affected (permission, role, user, template)
        target_id: Affected entity id
        actor_id: Who performed the change (None for system actions)
        old_value / new_value: State snapshots around the change
        correlation_id: Request correlation id
    """

    __tablename__ = "audit_logs"

    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str] = mapped_column(String(100), nullable=False)
    actor_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    old_value: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_value: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    correlation_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    __table_args__ = (Index("idx_audit_target", "target_type", "target_id"),)

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, event_type={self.event_type}, "
            f"target={self.target_type}:{self.target_id})>"
        )
