"""RFC 7807 Problem Details for HTTP APIs.

Exports:
    ErrorDetail: Individual field-specific error
    ProblemDetails: RFC 7807 compliant error response schema
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Individual field-specific error.

    Examples:
        >>> error = ErrorDetail(
        ...     field="checks[1].action",
        ...     code="invalid_action",
        ...     message="Action must match ^([a-z][a-z0-9_]*|\\*)$",
        ... )
    """

    field: str = Field(..., description="Field name")
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        type: URI reference identifying the problem type
        title: Short, human-readable summary of the problem type
        status: HTTP status code for this occurrence
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying the specific occurrence
        code: Machine-readable engine error code
        errors: Optional list of field-specific errors (for validation failures)
        details: Extra context of the error (usage counts, ids)
        trace_id: Optional request trace ID for debugging
    """

    type: str = Field(
        ...,
        description="URI reference identifying the problem type",
        examples=["http://localhost:8000/errors/last_role_violation"],
    )
    title: str = Field(..., description="Short, human-readable summary", examples=["Conflict"])
    status: int = Field(..., description="HTTP status code", examples=[409])
    detail: str = Field(
        ...,
        description="Human-readable explanation",
        examples=["Cannot revoke the user's only active role"],
    )
    instance: str = Field(
        ...,
        description="URI reference identifying this occurrence",
        examples=["/api/v1/users/0192f.../roles/0192f..."],
    )
    code: str | None = Field(None, description="Machine-readable error code")
    errors: list[ErrorDetail] | None = Field(None, description="List of field-specific errors")
    details: dict[str, str] | None = Field(None, description="Additional error context")
    trace_id: str | None = Field(None, description="Request trace ID for debugging")
