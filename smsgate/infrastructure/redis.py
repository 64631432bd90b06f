"""Redis client wrapper for gatekeeper counters, sets and hashes."""

from __future__ import annotations

import logging
from typing import Any, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from smsgate.core.exceptions import StoreUnavailableError
from smsgate.settings import settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Redis client wrapper for async operations.

    Every command is a single atomic round trip. Failures are raised as
    StoreUnavailableError; nothing is retried or defaulted here.
    """

    def __init__(self) -> None:
        """Initialize Redis client."""
        self._client: aioredis.Redis | None = None
        self._enabled: bool = settings.redis_enabled

    @property
    def is_connected(self) -> bool:
        return self._enabled and self._client is not None

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self._enabled:
            logger.info("Redis disabled - skipping connection")
            return
        if self._client is None:
            self._client = await aioredis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=settings.redis_socket_timeout_seconds,
            )
            try:
                await self._client.ping()
                logger.info("Redis connected successfully")
            except RedisError as e:
                # Commands keep failing with StoreUnavailableError until Redis is back
                logger.warning(f"Redis ping failed on startup: {e}")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _execute(self, command: str, *args: Any, **kwargs: Any) -> Any:
        if not self._enabled or self._client is None:
            raise StoreUnavailableError("Redis is not connected")
        try:
            return await getattr(self._client, command)(*args, **kwargs)
        except RedisError as e:
            raise StoreUnavailableError(f"Redis {command.upper()} failed: {e}") from e

    async def get(self, key: str) -> str | None:
        """Get value from Redis.

        Args:
            key: Redis key

        Returns:
            Value or None if not found
        """
        return await self._execute("get", key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set value in Redis.

        Args:
            key: Redis key
            value: Value to set
            ttl: Optional time-to-live in seconds

        Returns:
            True if successful
        """
        if ttl:
            return bool(await self._execute("setex", key, ttl, value))
        return bool(await self._execute("set", key, value))

    async def delete(self, *keys: str) -> int:
        """Delete keys from Redis.

        Returns:
            Number of keys deleted
        """
        if not keys:
            return 0
        return await self._execute("delete", *keys)

    async def incr(self, key: str) -> int:
        """Atomically increment a counter, creating it at 0 if absent."""
        return await self._execute("incr", key)

    async def expire(self, key: str, seconds: int) -> bool:
        """Set or refresh a key's TTL. False if the key does not exist."""
        return bool(await self._execute("expire", key, seconds))

    async def sadd(self, key: str, member: str) -> int:
        return await self._execute("sadd", key, member)

    async def srem(self, key: str, member: str) -> int:
        return await self._execute("srem", key, member)

    async def sismember(self, key: str, member: str) -> bool:
        return bool(await self._execute("sismember", key, member))

    async def smembers(self, key: str) -> set[str]:
        return set(await self._execute("smembers", key))

    async def hget(self, key: str, field: str) -> str | None:
        return await self._execute("hget", key, field)

    async def hmget(self, key: str, *fields: str) -> list[str | None]:
        return list(await self._execute("hmget", key, list(fields)))

    async def hset(self, key: str, field: str, value: str) -> int:
        return await self._execute("hset", key, field, value)

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        return await self._execute("hincrby", key, field, amount)

    async def scan_keys(self, pattern: str, count: int = 200) -> list[str]:
        """Collect keys matching a glob pattern using SCAN (never KEYS).

        Args:
            pattern: Redis glob pattern, e.g. ``burst:+15551234567:*``
            count: SCAN batch size hint

        Returns:
            Matching keys
        """
        if not self._enabled or self._client is None:
            raise StoreUnavailableError("Redis is not connected")
        try:
            return [key async for key in self._client.scan_iter(match=pattern, count=count)]
        except RedisError as e:
            raise StoreUnavailableError(f"Redis SCAN failed: {e}") from e

    async def _transaction(self, name: str, build: Callable[[Any], None]) -> list[Any]:
        if not self._enabled or self._client is None:
            raise StoreUnavailableError("Redis is not connected")
        try:
            # MULTI/EXEC: every queued command applies, or none does
            pipe = self._client.pipeline(transaction=True)
            build(pipe)
            return await pipe.execute()
        except RedisError as e:
            raise StoreUnavailableError(f"Redis {name} transaction failed: {e}") from e

    async def incr_with_expiry(self, key: str, seconds: int, refresh: bool = False) -> int:
        """Increment a counter and set its TTL in one transaction.

        Args:
            key: Counter key
            seconds: TTL in seconds
            refresh: Reset the TTL on every increment instead of only when
                the key has none (``EXPIRE ... NX``, Redis 7+)

        Returns:
            The incremented value
        """

        def build(pipe: Any) -> None:
            pipe.incr(key)
            pipe.expire(key, seconds, nx=not refresh)

        results = await self._transaction("INCR/EXPIRE", build)
        return int(results[0])

    async def incr_counter_and_hash(
        self,
        counter_key: str,
        counter_ttl: int,
        hash_key: str,
        hash_ttl: int,
        count_field: str,
        stamp_field: str,
        stamp: str,
    ) -> tuple[int, int]:
        """Bump a counter and a hash count field, stamp the hash, refresh both TTLs.

        All writes go out as one MULTI/EXEC so a failure never leaves a key
        without its TTL.

        Returns:
            Tuple of (counter value, hash count field value)
        """

        def build(pipe: Any) -> None:
            pipe.incr(counter_key)
            pipe.hincrby(hash_key, count_field, 1)
            pipe.hset(hash_key, stamp_field, stamp)
            pipe.expire(counter_key, counter_ttl)
            pipe.expire(hash_key, hash_ttl)

        results = await self._transaction("reply record", build)
        return int(results[0]), int(results[1])


# Global Redis client instance
redis_client = RedisClient()
