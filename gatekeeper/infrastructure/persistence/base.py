"""Base model and mixins for all database entities.

- BaseModel: Base class for ALL models (provides id, created_at)
- TimestampMixin: Internal mixin that adds updated_at
- BaseMutableModel: Base for mutable models (combines above)

Domain entities do NOT inherit from these; repositories map between them.
Generic column types (``Uuid``, ``JSON``, ``DateTime``) keep the models
portable between PostgreSQL and SQLite.

Architecture:
    BaseModel (id, created_at)
        ├── BaseMutableModel (+ updated_at)
        │   ├── PermissionModel
        │   ├── RoleModel
        │   └── UserPermissionModel
        │
        └── AuditLog, RoleHierarchyModel, ... (append-only or replaced wholesale)
"""

from datetime import datetime
from uuid import UUID as PythonUUID, uuid4

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class BaseModel(DeclarativeBase):
    """Base class for all database models (mutable and immutable)."""

    __abstract__ = True

    id: Mapped[PythonUUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampMixin:
    """Mixin for mutable models that track updates."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class BaseMutableModel(TimestampMixin, BaseModel):
    """Base class for mutable database models (id, created_at, updated_at)."""

    __abstract__ = True
