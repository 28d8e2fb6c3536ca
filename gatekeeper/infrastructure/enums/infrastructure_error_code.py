"""Infrastructure-specific error codes.

Internal codes for tracking infrastructure failures. They travel alongside
a domain ErrorCode on InfrastructureError.
"""

from enum import Enum


class InfrastructureErrorCode(Enum):
    """Infrastructure-specific error codes."""

    # Cache errors
    CACHE_CONNECTION_ERROR = "cache_connection_error"
    CACHE_GET_ERROR = "cache_get_error"
    CACHE_SET_ERROR = "cache_set_error"
    CACHE_DELETE_ERROR = "cache_delete_error"
