"""Tests for the in-memory counter store."""

from typing import get_type_hints

import pytest

from smsgate.core.exceptions import StoreUnavailableError
from smsgate.infrastructure.memory_store import InMemoryStore
from smsgate.infrastructure.redis import RedisClient
from smsgate.infrastructure.store import CounterStore


@pytest.mark.asyncio
async def test_incr_creates_and_counts(store):
    assert await store.incr("counter") == 1
    assert await store.incr("counter") == 2
    assert await store.get("counter") == "2"


@pytest.mark.asyncio
async def test_expire_and_ttl(store, clock):
    assert not await store.expire("missing", 10)

    await store.incr("counter")
    assert await store.expire("counter", 10)
    assert store.ttl("counter") == pytest.approx(10)

    clock.advance(10)
    assert await store.get("counter") is None
    assert await store.incr("counter") == 1
    assert store.ttl("counter") is None


@pytest.mark.asyncio
async def test_set_with_and_without_ttl(store, clock):
    await store.set("flag", "1", ttl=5)
    await store.set("sticky", "1")

    clock.advance(6)
    assert await store.get("flag") is None
    assert await store.get("sticky") == "1"


@pytest.mark.asyncio
async def test_sets(store):
    assert await store.sadd("members", "a") == 1
    assert await store.sadd("members", "a") == 0
    assert await store.sismember("members", "a")
    assert not await store.sismember("members", "b")
    assert await store.smembers("members") == {"a"}
    assert await store.srem("members", "a") == 1
    assert await store.srem("members", "a") == 0
    assert await store.scan_keys("*") == []


@pytest.mark.asyncio
async def test_hashes(store):
    assert await store.hincrby("h", "count", 1) == 1
    assert await store.hincrby("h", "count", 2) == 3
    assert await store.hset("h", "last", "123") == 1
    assert await store.hset("h", "last", "456") == 0
    assert await store.hget("h", "last") == "456"
    assert await store.hmget("h", "count", "last", "nope") == ["3", "456", None]
    assert await store.hmget("absent", "count") == [None]


@pytest.mark.asyncio
async def test_delete_and_scan(store):
    await store.set("burst:+15550001111:1", "1")
    await store.set("burst:+15550001111:2", "1")
    await store.set("burst:+15550002222:1", "1")

    matched = await store.scan_keys("burst:+15550001111:*")
    assert sorted(matched) == ["burst:+15550001111:1", "burst:+15550001111:2"]
    assert await store.delete(*matched, "missing") == 2
    assert await store.delete() == 0
    assert await store.scan_keys("burst:*") == ["burst:+15550002222:1"]


@pytest.mark.asyncio
async def test_wrong_type_raises(store):
    await store.sadd("members", "a")

    with pytest.raises(StoreUnavailableError):
        await store.incr("members")
    with pytest.raises(StoreUnavailableError):
        await store.hget("members", "field")


@pytest.mark.asyncio
async def test_incr_with_expiry_sets_ttl_on_first_write_only(store, clock):
    assert await store.incr_with_expiry("burst", 120) == 1
    clock.advance(30)
    assert await store.incr_with_expiry("burst", 120) == 2
    assert store.ttl("burst") == pytest.approx(90)

    await store.incr_with_expiry("suspicious", 120, refresh=True)
    clock.advance(30)
    await store.incr_with_expiry("suspicious", 120, refresh=True)
    assert store.ttl("suspicious") == pytest.approx(120)


@pytest.mark.asyncio
async def test_incr_counter_and_hash(store):
    result = await store.incr_counter_and_hash(
        counter_key="global",
        counter_ttl=600,
        hash_key="sender",
        hash_ttl=60,
        count_field="count",
        stamp_field="last",
        stamp="1000",
    )

    assert result == (1, 1)
    assert await store.hmget("sender", "count", "last") == ["1", "1000"]
    assert store.ttl("global") == pytest.approx(600)
    assert store.ttl("sender") == pytest.approx(60)


@pytest.mark.asyncio
async def test_incr_counter_and_hash_is_all_or_nothing(store):
    await store.sadd("global", "not-a-counter")

    with pytest.raises(StoreUnavailableError):
        await store.incr_counter_and_hash("global", 600, "sender", 60, "count", "last", "1000")

    assert await store.hmget("sender", "count", "last") == [None, None]
    assert store.ttl("sender") is None


@pytest.mark.parametrize("store_class", [InMemoryStore, RedisClient, CounterStore])
def test_set_returning_annotations_resolve(store_class):
    # These classes define a ``set`` method; ``set[str]`` must still mean the builtin
    assert get_type_hints(store_class.smembers)["return"] == set[str]
