"""Cache key construction for the authorization cache.

All keys follow ``{prefix}:authz:{kind}[:{id}]``.

Usage:
    keys = CacheKeys(prefix=settings.cache_key_prefix)
    keys.effective_permissions(user_id)  # "gatekeeper:authz:eff:{user_id}"
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class CacheKeys:
    """Centralized cache key construction.

    Attributes:
        prefix: Cache key prefix (typically "gatekeeper").
    """

    prefix: str

    def effective_permissions(self, user_id: UUID) -> str:
        """Serialized effective permission set of one user."""
        return f"{self.prefix}:authz:eff:{user_id}"

    def generation(self, user_id: UUID) -> str:
        """Per-user generation counter, bumped on every invalidation."""
        return f"{self.prefix}:authz:gen:{user_id}"

    def epoch(self) -> str:
        """Global epoch counter, bumped on a full flush."""
        return f"{self.prefix}:authz:epoch"

    def cached_users(self) -> str:
        """Set of user ids that currently hold a cached entry."""
        return f"{self.prefix}:authz:idx:users"

    def role_users(self, role_id: UUID) -> str:
        """Set of user ids whose cached entry depends on ``role_id``."""
        return f"{self.prefix}:authz:idx:role:{role_id}"
