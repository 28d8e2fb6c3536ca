"""HTTP middleware and request dependencies."""

from gatekeeper.presentation.routers.api.middleware.authorization_dependencies import (
    require_admin,
    require_any_permission,
    require_permission,
    require_role,
)
from gatekeeper.presentation.routers.api.middleware.request_context import (
    RequestContext,
    get_current_actor,
    get_request_context,
)
from gatekeeper.presentation.routers.api.middleware.trace_middleware import (
    TraceMiddleware,
    get_trace_id,
)

__all__ = [
    "RequestContext",
    "TraceMiddleware",
    "get_current_actor",
    "get_request_context",
    "get_trace_id",
    "require_admin",
    "require_any_permission",
    "require_permission",
    "require_role",
]
