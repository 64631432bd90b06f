"""Reply throttling for unknown senders.

Two caps and a cooldown, all read before any write:

- global replies per local day
- minimum gap between replies to the same sender
- replies per sender within a rolling period
"""

import asyncio
import logging
from dataclasses import dataclass

from smsgate.core.timekeys import day_key
from smsgate.domain import keys
from smsgate.domain.models import GateConfig, GuardResult
from smsgate.infrastructure.store import CounterStore

logger = logging.getLogger(__name__)


@dataclass
class ThrottleState:
    """Counters read for one sender at one instant."""

    sender: str
    global_key: str
    sender_key: str
    global_count: int = 0
    sender_count: int = 0
    last_reply_ms: int = 0


def _as_int(raw: str | None) -> int:
    """Absent or garbage values read as zero."""
    try:
        return max(int(raw or 0), 0)
    except ValueError:
        return 0


class ThrottleService:
    """Service enforcing reply caps and cooldowns."""

    def __init__(self, store: CounterStore, config: GateConfig) -> None:
        self.store = store
        self.config = config

    async def read_state(self, sender: str, now_ms: int) -> ThrottleState:
        """Load the global and per-sender counters for ``sender``."""
        global_key = keys.global_daily(day_key(now_ms, self.config.timezone))
        sender_key = keys.throttle(sender)
        global_raw, (count_raw, last_raw) = await asyncio.gather(
            self.store.get(global_key),
            self.store.hmget(sender_key, keys.THROTTLE_COUNT_FIELD, keys.THROTTLE_LAST_FIELD),
        )
        return ThrottleState(
            sender=sender,
            global_key=global_key,
            sender_key=sender_key,
            global_count=_as_int(global_raw),
            sender_count=_as_int(count_raw),
            last_reply_ms=_as_int(last_raw),
        )

    def evaluate(self, state: ThrottleState, now_ms: int) -> GuardResult:
        """Apply global cap, cooldown and per-sender cap, in that order."""
        config = self.config

        if state.global_count >= config.global_max_per_day:
            logger.info(
                "Throttle: global daily cap reached",
                extra={"sender": state.sender, "global_count": state.global_count},
            )
            return GuardResult(allow=False, reason="global_cap")

        cooldown_ms = config.cooldown_seconds * 1000
        if state.last_reply_ms and now_ms - state.last_reply_ms < cooldown_ms:
            logger.info(
                f"Throttle: {state.sender} still in cooldown",
                extra={"sender": state.sender, "last_reply_ms": state.last_reply_ms},
            )
            return GuardResult(allow=False, reason="cooldown")

        if state.sender_count >= config.max_per_sender:
            logger.info(
                f"Throttle: {state.sender} reached per-sender cap",
                extra={"sender": state.sender, "sender_count": state.sender_count},
            )
            return GuardResult(allow=False, reason="sender_cap")

        return GuardResult(allow=True)

    async def check(self, sender: str, now_ms: int) -> tuple[GuardResult, ThrottleState]:
        state = await self.read_state(sender, now_ms)
        return self.evaluate(state, now_ms), state

    async def record_reply(self, state: ThrottleState, now_ms: int) -> None:
        """Count a reply against the global and per-sender ledgers in one write."""
        global_count, sender_count = await self.store.incr_counter_and_hash(
            counter_key=state.global_key,
            counter_ttl=keys.DAILY_COUNTER_TTL_SECONDS,
            hash_key=state.sender_key,
            hash_ttl=self.config.per_sender_window_seconds,
            count_field=keys.THROTTLE_COUNT_FIELD,
            stamp_field=keys.THROTTLE_LAST_FIELD,
            stamp=str(now_ms),
        )
        logger.debug(
            f"Throttle: recorded reply to {state.sender}",
            extra={
                "sender": state.sender,
                "global_count": global_count,
                "sender_count": sender_count,
            },
        )

    async def global_cap_reached(self, now_ms: int) -> bool:
        """True when today's global reply counter is at or above the cap."""
        global_key = keys.global_daily(day_key(now_ms, self.config.timezone))
        return _as_int(await self.store.get(global_key)) >= self.config.global_max_per_day

    async def count_global_reply(self, now_ms: int) -> None:
        """Count a reply against the global ledger only."""
        global_key = keys.global_daily(day_key(now_ms, self.config.timezone))
        await self.store.incr_with_expiry(
            global_key, keys.DAILY_COUNTER_TTL_SECONDS, refresh=True
        )
