"""Infrastructure enums package."""

from gatekeeper.infrastructure.enums.infrastructure_error_code import (
    InfrastructureErrorCode,
)

__all__ = ["InfrastructureErrorCode"]
