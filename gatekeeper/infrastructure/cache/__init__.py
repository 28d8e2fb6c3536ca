"""Cache adapters."""

from gatekeeper.infrastructure.cache.cache_keys import CacheKeys
from gatekeeper.infrastructure.cache.effective_permission_cache import (
    RedisEffectivePermissionCache,
)
from gatekeeper.infrastructure.cache.redis_adapter import RedisAdapter

__all__ = ["CacheKeys", "RedisAdapter", "RedisEffectivePermissionCache"]
