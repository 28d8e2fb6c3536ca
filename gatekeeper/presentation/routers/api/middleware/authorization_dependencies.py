"""Authorization route-guard dependencies.

FastAPI dependencies that ask the engine whether the calling actor may
perform an action. Use them on routes of any service embedding the engine.

Usage:
    @router.get("/invoices")
    async def list_invoices(
        _: None = Depends(require_permission("invoices", "read")),
    ):
        ...

    @router.post("/payments")
    async def approve_payment(
        _: None = Depends(require_any_permission(
            ("payments", "approve"),
            ("payments", "*"),
        )),
    ):
        ...
"""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status

from gatekeeper.application.services import AuthorizationService
from gatekeeper.core.config import settings
from gatekeeper.core.container import get_authorization_service
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.entities import CheckItem
from gatekeeper.domain.enums import CheckMode
from gatekeeper.presentation.routers.api.middleware.request_context import (
    RequestContext,
    get_current_actor,
    get_request_context,
)


def require_permission(
    resource: str,
    action: str,
) -> Callable[..., Awaitable[None]]:
    """Create a dependency that requires ``resource.action``.

    Conditions attached to the grant are evaluated without request context,
    so a conditional grant only passes a route guard if its conditions need
    no context. Routes that rely on conditions should call ``check`` with
    the record context instead.

    Raises:
        HTTPException 401: If no actor was forwarded.
        HTTPException 403: If the actor lacks the permission.
    """

    async def permission_checker(
        actor_id: Annotated[UUID, Depends(get_current_actor)],
        authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> None:
        match await authorization.check(actor_id, resource, action):
            case Failure(error=error):
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Invalid route guard {resource}.{action}: {error.message}",
                )
            case Success(value=decision):
                if not decision.allowed:
                    raise HTTPException(
                        status_code=status.HTTP_403_FORBIDDEN,
                        detail=f"Permission denied: {resource}.{action} ({decision.reason.value})",
                    )

    return permission_checker


def require_any_permission(
    *permissions: tuple[str, str],
) -> Callable[..., Awaitable[None]]:
    """Create a dependency that requires at least one of ``permissions``.

    Raises:
        HTTPException 403: If the actor holds none of them.
    """
    items = [CheckItem(resource=resource, action=action) for resource, action in permissions]

    async def permission_checker(
        actor_id: Annotated[UUID, Depends(get_current_actor)],
        authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> None:
        match await authorization.check_many(actor_id, items, CheckMode.ANY):
            case Failure(error=error):
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Invalid route guard: {error.message}",
                )
            case Success(value=result):
                if not result.allowed:
                    perms_str = ", ".join(f"{r}.{a}" for r, a in permissions)
                    raise HTTPException(
                        status_code=status.HTTP_403_FORBIDDEN,
                        detail=f"Permission denied: requires one of [{perms_str}]",
                    )

    return permission_checker


async def require_admin(
    ctx: Annotated[RequestContext, Depends(get_request_context)],
    authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> UUID | None:
    """Require one of ``settings.admin_role_names`` for the admin API.

    Returns:
        The admin actor id (None only when the guard is disabled).

    Raises:
        HTTPException 401: If no actor was forwarded.
        HTTPException 403: If the actor holds no admin role.
    """
    if not settings.admin_guard_enabled:
        return ctx.actor_id
    actor_id = await get_current_actor(ctx)
    for role_name in settings.admin_role_names:
        if await authorization.has_role(actor_id, role_name):
            return actor_id
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Administrator role required",
    )


def require_role(role_name: str) -> Callable[..., Awaitable[None]]:
    """Create a dependency that requires an actively assigned role.

    Raises:
        HTTPException 403: If the actor does not hold ``role_name``.
    """

    async def role_checker(
        actor_id: Annotated[UUID, Depends(get_current_actor)],
        authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> None:
        if not await authorization.has_role(actor_id, role_name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{role_name}' required",
            )

    return role_checker
