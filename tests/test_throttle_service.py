"""Tests for the throttle ledger."""

from dataclasses import replace

import pytest

from smsgate.domain import keys
from smsgate.domain.services.throttle_service import ThrottleService, ThrottleState

SENDER = "+15559990000"


@pytest.fixture
def throttle(store, config) -> ThrottleService:
    return ThrottleService(store, config)


def _state(**overrides) -> ThrottleState:
    values = {
        "sender": SENDER,
        "global_key": keys.global_daily("2025-10-09"),
        "sender_key": keys.throttle(SENDER),
    }
    values.update(overrides)
    return ThrottleState(**values)


@pytest.mark.asyncio
async def test_absent_counters_read_as_zero(throttle, clock):
    state = await throttle.read_state(SENDER, clock.ms)

    assert state.global_key == "rl:global:2025-10-09"
    assert (state.global_count, state.sender_count, state.last_reply_ms) == (0, 0, 0)


@pytest.mark.asyncio
async def test_garbage_counters_read_as_zero(throttle, store, clock):
    await store.set("rl:global:2025-10-09", "not-a-number")
    await store.hset(keys.throttle(SENDER), "count", "-4")

    state = await throttle.read_state(SENDER, clock.ms)
    assert (state.global_count, state.sender_count) == (0, 0)


def test_evaluate_order(throttle, clock, config):
    now = clock.ms

    # Global cap is checked before cooldown and per-sender cap
    state = _state(global_count=config.global_max_per_day, sender_count=99, last_reply_ms=now)
    assert throttle.evaluate(state, now).reason == "global_cap"

    # Cooldown is checked before per-sender cap
    state = _state(sender_count=99, last_reply_ms=now - 1000)
    assert throttle.evaluate(state, now).reason == "cooldown"

    state = _state(sender_count=config.max_per_sender, last_reply_ms=now - config.cooldown_seconds * 1000)
    assert throttle.evaluate(state, now).reason == "sender_cap"

    state = _state(sender_count=config.max_per_sender - 1)
    assert throttle.evaluate(state, now).allow


@pytest.mark.asyncio
async def test_record_reply_updates_counters_and_ttls(throttle, store, clock, config):
    _, state = await throttle.check(SENDER, clock.ms)
    await throttle.record_reply(state, clock.ms)

    assert await store.get("rl:global:2025-10-09") == "1"
    assert await store.hget(keys.throttle(SENDER), "count") == "1"
    assert await store.hget(keys.throttle(SENDER), "last") == str(clock.ms)
    assert store.ttl("rl:global:2025-10-09") == pytest.approx(keys.DAILY_COUNTER_TTL_SECONDS)
    assert store.ttl(keys.throttle(SENDER)) == pytest.approx(config.per_sender_window_seconds)


@pytest.mark.asyncio
async def test_sender_window_rolls_over(store, config, clock):
    throttle = ThrottleService(store, replace(config, max_per_sender=1, per_sender_window_seconds=3600))

    verdict, state = await throttle.check(SENDER, clock.ms)
    await throttle.record_reply(state, clock.ms)
    clock.advance(600)
    capped, _ = await throttle.check(SENDER, clock.ms)
    clock.advance(3000)
    reopened, _ = await throttle.check(SENDER, clock.ms)

    assert verdict.allow
    assert capped.reason == "sender_cap"
    assert reopened.allow


@pytest.mark.asyncio
async def test_global_counter_is_per_local_day(throttle, store, clock):
    await throttle.count_global_reply(clock.ms)
    assert await throttle.global_cap_reached(clock.ms) is False

    # 01:55 PDT -> next local day starts in 22h05m
    clock.advance(22 * 3600 + 5 * 60)
    await throttle.count_global_reply(clock.ms)

    assert await store.get("rl:global:2025-10-09") == "1"
    assert await store.get("rl:global:2025-10-10") == "1"
