"""Request context dependencies.

Authentication happens upstream: the gateway forwards the authenticated
caller in ``X-Actor-Id``. Mutations record that actor and the request
trace id (correlation id) in the audit trail.

Usage:
    @router.post("/roles")
    async def create_role(
        data: RoleCreateRequest,
        ctx: Annotated[RequestContext, Depends(get_request_context)],
    ):
        await service.create_role(..., actor_id=ctx.actor_id,
                                  correlation_id=ctx.correlation_id)
"""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from uuid_extensions import uuid7

from gatekeeper.presentation.routers.api.middleware.trace_middleware import get_trace_id

ACTOR_HEADER = "X-Actor-Id"


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and under which correlation id.

    Attributes:
        actor_id: Authenticated caller, None for anonymous/system calls.
        correlation_id: Trace id of the request.
    """

    actor_id: UUID | None
    correlation_id: str


def _parse_actor(raw: str | None) -> UUID | None:
    if raw is None or not raw.strip():
        return None
    try:
        return UUID(raw.strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{ACTOR_HEADER} must be a UUID",
        ) from None


async def get_request_context(
    x_actor_id: Annotated[str | None, Header(alias=ACTOR_HEADER)] = None,
) -> RequestContext:
    return RequestContext(
        actor_id=_parse_actor(x_actor_id),
        correlation_id=get_trace_id() or str(uuid7()),
    )


async def get_current_actor(
    ctx: Annotated[RequestContext, Depends(get_request_context)],
) -> UUID:
    """Require an actor id.

    Raises:
        HTTPException 401: If no ``X-Actor-Id`` header was forwarded.
    """
    if ctx.actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{ACTOR_HEADER} header is required",
        )
    return ctx.actor_id
