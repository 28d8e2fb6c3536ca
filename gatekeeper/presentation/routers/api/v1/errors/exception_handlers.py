"""Application-wide exception handlers.

Everything that escapes a route as an exception leaves the API as an
RFC 7807 problem document, same shape as the ``Failure`` responses built by
:class:`ErrorResponseBuilder`:

    HTTPException           -> status from the exception (guards, headers)
    RequestValidationError  -> 422 with one ErrorDetail per invalid field
    Exception               -> 500, logged with the trace id, no internals
"""

from collections.abc import Mapping

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gatekeeper.core.config import settings
from gatekeeper.core.container import get_logger
from gatekeeper.presentation.routers.api.v1.errors.problem_details import (
    ErrorDetail,
    ProblemDetails,
)

_STATUS_TITLES: dict[int, tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("bad-request", "Bad Request"),
    status.HTTP_401_UNAUTHORIZED: ("unauthorized", "Actor Required"),
    status.HTTP_403_FORBIDDEN: ("forbidden", "Access Denied"),
    status.HTTP_404_NOT_FOUND: ("not-found", "Resource Not Found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("method-not-allowed", "Method Not Allowed"),
    status.HTTP_409_CONFLICT: ("conflict", "Resource Conflict"),
    status.HTTP_422_UNPROCESSABLE_ENTITY: ("validation-failed", "Validation Failed"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal-server-error", "Internal Server Error"),
    status.HTTP_503_SERVICE_UNAVAILABLE: ("service-unavailable", "Service Unavailable"),
}


def _problem_response(
    request: Request,
    status_code: int,
    detail: str,
    *,
    errors: list[ErrorDetail] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    slug, title = _STATUS_TITLES.get(status_code, ("error", "Error"))
    problem = ProblemDetails(
        type=f"{settings.api_base_url}/errors/{slug}",
        title=title,
        status=status_code,
        detail=detail,
        instance=request.url.path,
        errors=errors,
        trace_id=getattr(request.state, "trace_id", None),
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(exclude_none=True),
        headers=dict(headers) if headers else None,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Route guards and header parsing raise HTTPException."""
    assert isinstance(exc, HTTPException)
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem_response(request, exc.status_code, detail, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)

    errors = []
    for error in exc.errors():
        # ("body", "checks", 3, "action") -> "checks.3.action"
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(
            ErrorDetail(
                field=location or "request",
                code=error.get("type", "validation_error"),
                message=error.get("msg", "Invalid value"),
            )
        )

    return _problem_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Request body or parameters are invalid",
        errors=errors or None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    get_logger().error(
        "unhandled_exception",
        error=exc,
        trace_id=getattr(request.state, "trace_id", None),
        method=request.method,
        path=request.url.path,
    )
    return _problem_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Unexpected error; quote the trace id when reporting it",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
