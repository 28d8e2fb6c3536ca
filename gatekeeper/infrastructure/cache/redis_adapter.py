"""Redis adapter implementing CacheProtocol.

Wraps the redis-py asyncio client. Every call returns a Result; Redis and
unexpected exceptions become ``CacheError`` so callers can fail open.
"""

from __future__ import annotations

from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.infrastructure.enums import InfrastructureErrorCode
from gatekeeper.infrastructure.errors import CacheError


def _decode(value: Any) -> str | None:
    if value is None:
        return None
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


def _cache_failure(
    operation: str,
    infrastructure_code: InfrastructureErrorCode,
    error: Exception,
    **details: Any,
) -> Failure[CacheError]:
    unexpected = not isinstance(error, RedisError)
    return Failure(
        error=CacheError(
            code=ErrorCode.CACHE_UNAVAILABLE,
            infrastructure_code=infrastructure_code,
            message=(
                f"Unexpected error during cache {operation}"
                if unexpected
                else f"Cache {operation} failed"
            ),
            details={
                **details,
                "error": str(error),
                **({"type": type(error).__name__} if unexpected else {}),
            },
        )
    )


class RedisAdapter:
    """Redis implementation of CacheProtocol.

    Note: Does NOT inherit from CacheProtocol (uses structural typing).

    Attributes:
        _redis: Async Redis client instance.
    """

    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> Result[str | None, CacheError]:
        """Get value from Redis; Success(None) when the key is missing."""
        try:
            return Success(value=_decode(await self._redis.get(key)))
        except Exception as e:
            return _cache_failure("get", InfrastructureErrorCode.CACHE_GET_ERROR, e, key=key)

    async def get_many(self, keys: list[str]) -> Result[list[str | None], CacheError]:
        """Get several values with one MGET, preserving key order."""
        if not keys:
            return Success(value=[])
        try:
            values = await self._redis.mget(keys)
            return Success(value=[_decode(v) for v in values])
        except Exception as e:
            return _cache_failure(
                "get_many", InfrastructureErrorCode.CACHE_GET_ERROR, e, keys=keys
            )

    async def set(
        self,
        key: str,
        value: str,
        ttl: int | None = None,
    ) -> Result[None, CacheError]:
        """Set value, with TTL in seconds when given."""
        try:
            if ttl is not None:
                await self._redis.setex(key, ttl, value)
            else:
                await self._redis.set(key, value)
            return Success(value=None)
        except Exception as e:
            return _cache_failure(
                "set", InfrastructureErrorCode.CACHE_SET_ERROR, e, key=key, ttl=ttl
            )

    async def delete(self, key: str) -> Result[bool, CacheError]:
        """Delete key; True when it existed."""
        try:
            return Success(value=await self._redis.delete(key) > 0)
        except Exception as e:
            return _cache_failure(
                "delete", InfrastructureErrorCode.CACHE_DELETE_ERROR, e, key=key
            )

    async def delete_many(self, keys: list[str]) -> Result[int, CacheError]:
        """Delete several keys; returns how many existed."""
        if not keys:
            return Success(value=0)
        try:
            return Success(value=int(await self._redis.delete(*keys)))
        except Exception as e:
            return _cache_failure(
                "delete_many", InfrastructureErrorCode.CACHE_DELETE_ERROR, e, keys=keys
            )

    async def increment(self, key: str, amount: int = 1) -> Result[int, CacheError]:
        """Increment value in Redis (atomic)."""
        try:
            return Success(value=int(await self._redis.incrby(key, amount)))
        except Exception as e:
            return _cache_failure(
                "increment", InfrastructureErrorCode.CACHE_SET_ERROR, e, key=key
            )

    async def add_to_set(
        self, key: str, members: list[str], ttl: int | None = None
    ) -> Result[int, CacheError]:
        """SADD members; refresh the set TTL when given."""
        if not members:
            return Success(value=0)
        try:
            added = await self._redis.sadd(key, *members)
            if ttl is not None:
                await self._redis.expire(key, ttl)
            return Success(value=int(added))
        except Exception as e:
            return _cache_failure(
                "add_to_set", InfrastructureErrorCode.CACHE_SET_ERROR, e, key=key
            )

    async def set_members(self, key: str) -> Result[set[str], CacheError]:
        """SMEMBERS; empty set when the key is missing."""
        try:
            members = await self._redis.smembers(key)
            return Success(value={m for m in (_decode(v) for v in members) if m is not None})
        except Exception as e:
            return _cache_failure(
                "set_members", InfrastructureErrorCode.CACHE_GET_ERROR, e, key=key
            )

    async def remove_from_set(self, key: str, members: list[str]) -> Result[int, CacheError]:
        """SREM members."""
        if not members:
            return Success(value=0)
        try:
            return Success(value=int(await self._redis.srem(key, *members)))
        except Exception as e:
            return _cache_failure(
                "remove_from_set", InfrastructureErrorCode.CACHE_DELETE_ERROR, e, key=key
            )

    async def flush(self) -> Result[None, CacheError]:
        """Flush all keys from Redis. WARNING: tests only."""
        try:
            await self._redis.flushdb()
            return Success(value=None)
        except Exception as e:
            return _cache_failure("flush", InfrastructureErrorCode.CACHE_DELETE_ERROR, e)

    async def ping(self) -> Result[bool, CacheError]:
        """Check Redis connectivity (health check)."""
        try:
            await self._redis.ping()  # type: ignore[misc]
            return Success(value=True)
        except Exception as e:
            return _cache_failure("ping", InfrastructureErrorCode.CACHE_CONNECTION_ERROR, e)
