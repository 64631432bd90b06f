"""Counter store capability used by the decision pipeline.

Supports both Redis-based (distributed) and in-memory (single instance)
backends, chosen from settings the same way for every caller.
"""

from __future__ import annotations

from typing import Protocol

from smsgate.infrastructure.memory_store import InMemoryStore
from smsgate.infrastructure.redis import redis_client
from smsgate.settings import settings


class CounterStore(Protocol):
    """Atomic key-value operations the gatekeeper needs from its store."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool: ...

    async def delete(self, *keys: str) -> int: ...

    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, seconds: int) -> bool: ...

    async def sadd(self, key: str, member: str) -> int: ...

    async def srem(self, key: str, member: str) -> int: ...

    async def sismember(self, key: str, member: str) -> bool: ...

    async def smembers(self, key: str) -> set[str]: ...

    async def hget(self, key: str, field: str) -> str | None: ...

    async def hmget(self, key: str, *fields: str) -> list[str | None]: ...

    async def hset(self, key: str, field: str, value: str) -> int: ...

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int: ...

    async def scan_keys(self, pattern: str, count: int = 200) -> list[str]: ...

    async def incr_with_expiry(self, key: str, seconds: int, refresh: bool = False) -> int: ...

    async def incr_counter_and_hash(
        self,
        counter_key: str,
        counter_ttl: int,
        hash_key: str,
        hash_ttl: int,
        count_field: str,
        stamp_field: str,
        stamp: str,
    ) -> tuple[int, int]: ...


# Process-local fallback used only when Redis is disabled
_in_memory_store = InMemoryStore()


def get_store() -> CounterStore:
    """Return the configured counter store.

    When Redis is enabled the Redis client is returned even if it is down, so
    failures surface as StoreUnavailableError instead of silently switching
    to per-process counters.
    """
    if settings.redis_enabled:
        return redis_client
    return _in_memory_store
