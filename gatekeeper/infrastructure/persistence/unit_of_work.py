"""SQLAlchemy unit of work.

One ``AsyncSession`` and one transaction per unit of work, shared by every
repository. Leaving the ``async with`` block without ``commit()`` rolls the
transaction back, so an early ``return Failure(...)`` never leaves a partial
write behind.
"""

from types import TracebackType

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.infrastructure.persistence.database import Database
from gatekeeper.infrastructure.persistence.repositories import (
    PermissionOverrideRepository,
    PermissionRepository,
    PermissionTemplateRepository,
    RoleAssignmentRepository,
    RolePermissionRepository,
    RoleRepository,
)


class SqlAlchemyUnitOfWork:
    """Unit of work over a :class:`Database`.

    Args:
        database: Database owning the session factories.
        read_only: Use the snapshot session factory and never commit.

    Example:
        >>> async with SqlAlchemyUnitOfWork(database) as uow:
        ...     await uow.roles.add(role)
        ...     await uow.commit()
    """

    def __init__(self, database: Database, *, read_only: bool = False) -> None:
        self._database = database
        self._read_only = read_only
        self._session: AsyncSession | None = None
        self._finished = False

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        factory = (
            self._database.snapshot_session if self._read_only else self._database.async_session
        )
        session = factory()
        await session.begin()
        self._session = session
        self._finished = False

        self.permissions = PermissionRepository(session)
        self.roles = RoleRepository(session)
        self.role_permissions = RolePermissionRepository(session)
        self.assignments = RoleAssignmentRepository(session)
        self.overrides = PermissionOverrideRepository(session)
        self.templates = PermissionTemplateRepository(session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._session is None:
            return
        try:
            if not self._finished:
                await self._session.rollback()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        if self._read_only:
            raise RuntimeError("Read-only unit of work cannot commit")
        await self._session.commit()
        self._finished = True

    async def rollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()
            self._finished = True


class SqlAlchemyUnitOfWorkFactory:
    """Callable producing units of work bound to one database."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def __call__(self, *, read_only: bool = False) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self._database, read_only=read_only)
