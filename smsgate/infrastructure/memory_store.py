"""In-memory counter store for development and tests.

Mirrors the subset of Redis semantics the gatekeeper relies on: string
counters, sets and hashes with per-key TTL. Not shared across processes.
"""

from __future__ import annotations

import asyncio
import fnmatch
import time
from typing import Any, Callable

from smsgate.core.exceptions import StoreUnavailableError


class InMemoryStore:
    """Single-process stand-in for the Redis counter store."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, Any] = {}
        self._expires_at: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def _purge(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and deadline <= self._clock():
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    def _lookup(self, key: str, kind: type) -> Any:
        self._purge(key)
        value = self._data.get(key)
        if value is not None and not isinstance(value, kind):
            raise StoreUnavailableError(
                f"WRONGTYPE operation against key {key!r} holding {type(value).__name__}"
            )
        return value

    def ttl(self, key: str) -> float | None:
        """Seconds until ``key`` expires, or None when it has no TTL or is absent."""
        self._purge(key)
        deadline = self._expires_at.get(key)
        return None if deadline is None else deadline - self._clock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._lookup(key, str)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        async with self._lock:
            self._data[key] = str(value)
            if ttl:
                self._expires_at[key] = self._clock() + ttl
            else:
                self._expires_at.pop(key, None)
            return True

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            deleted = 0
            for key in keys:
                self._purge(key)
                if self._data.pop(key, None) is not None:
                    deleted += 1
                self._expires_at.pop(key, None)
            return deleted

    async def incr(self, key: str) -> int:
        async with self._lock:
            current = self._lookup(key, str)
            try:
                value = int(current or 0) + 1
            except ValueError as e:
                raise StoreUnavailableError(f"value at {key!r} is not an integer") from e
            self._data[key] = str(value)
            return value

    async def expire(self, key: str, seconds: int) -> bool:
        async with self._lock:
            self._purge(key)
            if key not in self._data:
                return False
            self._expires_at[key] = self._clock() + seconds
            return True

    async def sadd(self, key: str, member: str) -> int:
        async with self._lock:
            members = self._lookup(key, set)
            if members is None:
                members = self._data[key] = set()
            if member in members:
                return 0
            members.add(member)
            return 1

    async def srem(self, key: str, member: str) -> int:
        async with self._lock:
            members = self._lookup(key, set)
            if not members or member not in members:
                return 0
            members.discard(member)
            if not members:
                self._data.pop(key, None)
                self._expires_at.pop(key, None)
            return 1

    async def sismember(self, key: str, member: str) -> bool:
        async with self._lock:
            members = self._lookup(key, set)
            return bool(members) and member in members

    async def smembers(self, key: str) -> set[str]:
        async with self._lock:
            return set(self._lookup(key, set) or ())

    async def hget(self, key: str, field: str) -> str | None:
        async with self._lock:
            return (self._lookup(key, dict) or {}).get(field)

    async def hmget(self, key: str, *fields: str) -> list[str | None]:
        async with self._lock:
            mapping = self._lookup(key, dict) or {}
            return [mapping.get(field) for field in fields]

    async def hset(self, key: str, field: str, value: str) -> int:
        async with self._lock:
            mapping = self._lookup(key, dict)
            if mapping is None:
                mapping = self._data[key] = {}
            created = field not in mapping
            mapping[field] = str(value)
            return int(created)

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        async with self._lock:
            mapping = self._lookup(key, dict)
            if mapping is None:
                mapping = self._data[key] = {}
            try:
                value = int(mapping.get(field) or 0) + amount
            except ValueError as e:
                raise StoreUnavailableError(f"hash field {field!r} is not an integer") from e
            mapping[field] = str(value)
            return value

    async def scan_keys(self, pattern: str, count: int = 200) -> list[str]:
        async with self._lock:
            for key in list(self._data):
                self._purge(key)
            return [key for key in self._data if fnmatch.fnmatchcase(key, pattern)]

    def _set_deadline(self, key: str, seconds: int, refresh: bool = True) -> None:
        if refresh or key not in self._expires_at:
            self._expires_at[key] = self._clock() + seconds

    async def incr_with_expiry(self, key: str, seconds: int, refresh: bool = False) -> int:
        async with self._lock:
            current = self._lookup(key, str)
            try:
                value = int(current or 0) + 1
            except ValueError as e:
                raise StoreUnavailableError(f"value at {key!r} is not an integer") from e
            self._data[key] = str(value)
            self._set_deadline(key, seconds, refresh)
            return value

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
        async with self._lock:
            # Validate both keys before the first write so a failure changes nothing
            current = self._lookup(counter_key, str)
            mapping = self._lookup(hash_key, dict)
            try:
                counter_value = int(current or 0) + 1
                hash_value = int((mapping or {}).get(count_field) or 0) + 1
            except ValueError as e:
                raise StoreUnavailableError("reply counters hold non-integer values") from e

            if mapping is None:
                mapping = self._data[hash_key] = {}
            self._data[counter_key] = str(counter_value)
            mapping[count_field] = str(hash_value)
            mapping[stamp_field] = str(stamp)
            self._set_deadline(counter_key, counter_ttl)
            self._set_deadline(hash_key, hash_ttl)
            return counter_value, hash_value
