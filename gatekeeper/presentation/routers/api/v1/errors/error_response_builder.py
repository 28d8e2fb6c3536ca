"""Error response builder for RFC 7807 Problem Details.

Converts engine ``DomainError`` values (returned inside ``Failure``) into
problem-details responses with a status derived from the error code.

Exports:
    ErrorResponseBuilder: Utility class for building RFC 7807 responses
    status_for: ErrorCode -> HTTP status mapping
"""

from dataclasses import fields

from fastapi import Request, status
from fastapi.responses import JSONResponse

from gatekeeper.core.config import settings
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import DomainError
from gatekeeper.presentation.routers.api.v1.errors.problem_details import (
    ErrorDetail,
    ProblemDetails,
)

_BAD_REQUEST = {
    ErrorCode.VALIDATION_FAILED,
    ErrorCode.INVALID_RESOURCE,
    ErrorCode.INVALID_ACTION,
    ErrorCode.INVALID_ROLE_NAME,
    ErrorCode.INVALID_CONDITION,
}
_NOT_FOUND = {
    ErrorCode.PERMISSION_NOT_FOUND,
    ErrorCode.ROLE_NOT_FOUND,
    ErrorCode.ASSIGNMENT_NOT_FOUND,
    ErrorCode.OVERRIDE_NOT_FOUND,
    ErrorCode.TEMPLATE_NOT_FOUND,
}
_FORBIDDEN = {
    ErrorCode.SYSTEM_ROLE_IMMUTABLE,
    ErrorCode.SYSTEM_PERMISSION_IMMUTABLE,
    ErrorCode.PERMISSION_DENIED,
}
_CONFLICT = {
    ErrorCode.PERMISSION_ALREADY_EXISTS,
    ErrorCode.ROLE_ALREADY_EXISTS,
    ErrorCode.TEMPLATE_ALREADY_EXISTS,
    ErrorCode.ASSIGNMENT_ALREADY_ACTIVE,
    ErrorCode.PERMISSION_IN_USE,
    ErrorCode.ROLE_IN_USE,
    ErrorCode.LAST_ROLE_VIOLATION,
    ErrorCode.CYCLIC_HIERARCHY,
    ErrorCode.ROLE_INACTIVE,
    ErrorCode.PERMISSION_INACTIVE,
}

_TITLES = {
    status.HTTP_400_BAD_REQUEST: "Validation Failed",
    status.HTTP_403_FORBIDDEN: "Access Denied",
    status.HTTP_404_NOT_FOUND: "Resource Not Found",
    status.HTTP_409_CONFLICT: "Resource Conflict",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "Internal Server Error",
}

# Attributes rendered elsewhere in the problem body.
_BASE_FIELDS = {"code", "message", "details", "field"}


def status_for(code: ErrorCode) -> int:
    """Map an engine error code to an HTTP status code."""
    if code in _BAD_REQUEST:
        return status.HTTP_400_BAD_REQUEST
    if code in _NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    if code in _FORBIDDEN:
        return status.HTTP_403_FORBIDDEN
    if code in _CONFLICT:
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class ErrorResponseBuilder:
    """Build RFC 7807 Problem Details error responses.

    Example:
        >>> match await service.revoke_role(user_id, role_id, reason):
        ...     case Failure(error=error):
        ...         return ErrorResponseBuilder.from_domain_error(error, request)
    """

    @staticmethod
    def from_domain_error(
        error: DomainError,
        request: Request,
        trace_id: str | None = None,
    ) -> JSONResponse:
        """Convert a DomainError to an RFC 7807 JSON response."""
        status_code = status_for(error.code)
        problem = ProblemDetails(
            type=f"{settings.api_base_url}/errors/{error.code.value}",
            title=_TITLES[status_code],
            status=status_code,
            detail=error.message,
            instance=str(request.url.path),
            code=error.code.value,
            errors=None,
            details=ErrorResponseBuilder._details(error),
            trace_id=trace_id or getattr(request.state, "trace_id", None),
        )

        # Field-specific error for validation failures
        field_name = getattr(error, "field", None)
        if field_name is not None:
            problem.errors = [
                ErrorDetail(field=field_name, code=error.code.value, message=error.message)
            ]

        return JSONResponse(
            status_code=status_code,
            content=problem.model_dump(exclude_none=True),
        )

    @staticmethod
    def _details(error: DomainError) -> dict[str, str] | None:
        """Subclass attributes (resource ids, usage counts) plus ``details``."""
        extra = {
            f.name: str(getattr(error, f.name))
            for f in fields(error)
            if f.name not in _BASE_FIELDS and getattr(error, f.name) is not None
        }
        if error.details:
            extra.update(error.details)
        return extra or None
