"""Unit of work protocol.

A unit of work is one database transaction exposing every repository.
Mutations use it as an async context manager: leaving the block without
``commit()`` (or with an exception) rolls back. The resolver opens a
read-only unit of work so all of its reads share one snapshot.

Usage:
    async with uow_factory() as uow:
        role = await uow.roles.get(role_id)
        ...
        await uow.commit()
"""

from types import TracebackType
from typing import Protocol

from gatekeeper.domain.protocols.assignment_repository import (
    PermissionOverrideRepository,
    RoleAssignmentRepository,
)
from gatekeeper.domain.protocols.permission_repository import PermissionRepository
from gatekeeper.domain.protocols.role_repository import (
    RolePermissionRepository,
    RoleRepository,
)
from gatekeeper.domain.protocols.template_repository import PermissionTemplateRepository


class UnitOfWork(Protocol):
    permissions: PermissionRepository
    roles: RoleRepository
    role_permissions: RolePermissionRepository
    assignments: RoleAssignmentRepository
    overrides: PermissionOverrideRepository
    templates: PermissionTemplateRepository

    async def __aenter__(self) -> "UnitOfWork":
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class UnitOfWorkFactory(Protocol):
    def __call__(self, *, read_only: bool = False) -> UnitOfWork:
        ...


