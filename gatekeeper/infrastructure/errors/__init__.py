"""Infrastructure errors package."""

from gatekeeper.infrastructure.errors.infrastructure_error import CacheError, InfrastructureError

__all__ = ["CacheError", "InfrastructureError"]
