"""Abuse guard for inbound messages from unknown (non-whitelisted) senders.

Stages run cheapest first so structural rejections never write to the store:

1. origin format
2. permanent blocklist
3. per-sender burst window (escalates to a permanent block)
4. global unknown-flood breaker (defensive mode)
5. content sanity (repeat offenders escalate to a permanent block)
"""

import asyncio
import logging
import re

from smsgate.core.exceptions import StoreUnavailableError
from smsgate.core.phone import is_valid_origin
from smsgate.core.timekeys import day_key, window_bucket
from smsgate.domain import keys
from smsgate.domain.models import GateConfig, GuardResult
from smsgate.infrastructure.store import CounterStore

logger = logging.getLogger(__name__)

# Extra lifetime past the window so a counter never expires mid-window
BURST_TTL_SLACK_SECONDS = 60
FLOOD_TTL_SLACK_SECONDS = 300
SUSPICIOUS_TTL_SECONDS = 172800


class AbuseGuard:
    """Multi-stage filter deciding whether an unknown sender is evaluated further."""

    def __init__(self, store: CounterStore, config: GateConfig) -> None:
        self.store = store
        self.config = config

    async def is_blocked(self, sender: str) -> bool:
        """Check the permanent block flag and the abuse index."""
        if await self.store.get(keys.block(sender)):
            return True
        return await self.store.sismember(keys.ABUSE_INDEX, sender)

    async def block_permanently(self, sender: str, cause: str) -> None:
        """Add sender to the blocklist. Only an admin unblock reverses this."""
        await asyncio.gather(
            self.store.set(keys.block(sender), "1"),
            self.store.sadd(keys.ABUSE_INDEX, sender),
        )
        logger.warning(
            f"AbuseGuard: permanently blocked {sender} ({cause})",
            extra={"event_type": "sender_blocked", "sender": sender, "cause": cause},
        )

    async def check(self, sender: str, body: str, now_ms: int) -> GuardResult:
        """Run every stage in order; the first rejection wins.

        Args:
            sender: Canonical sender number
            body: Message body (already stripped)
            now_ms: Current time in epoch milliseconds

        Returns:
            GuardResult with allow=False and the rejecting stage as reason
        """
        config = self.config

        # 1) Origin format
        if not is_valid_origin(sender, config.origin_pattern):
            logger.info(f"AbuseGuard: rejected unsupported origin {sender}", extra={"sender": sender})
            return GuardResult(allow=False, reason="invalid_origin")

        # 2) Blocklisted numbers
        if await self.is_blocked(sender):
            logger.info(f"AbuseGuard: rejected blocklisted number {sender}", extra={"sender": sender})
            return GuardResult(allow=False, reason="blocked")

        # 3) Per-number burst guard
        if config.burst_guard_enabled and await self._burst_exceeded(sender, now_ms):
            return GuardResult(allow=False, reason="burst")

        # 4) Global anomaly breaker
        if await self._defensive_mode_active(now_ms):
            logger.info(f"AbuseGuard: rejected {sender} due to defensive mode", extra={"sender": sender})
            return GuardResult(allow=False, reason="defensive_mode")

        # 5) Content sanity
        if len(body) > config.max_message_length or re.search(
            config.url_pattern, body, re.IGNORECASE
        ):
            await self._record_suspicious(sender, now_ms)
            return GuardResult(allow=False, reason="suspicious_content")

        return GuardResult(allow=True)

    async def _burst_exceeded(self, sender: str, now_ms: int) -> bool:
        window = self.config.burst_window_seconds
        burst_key = keys.burst(sender, window_bucket(now_ms, window))
        count = await self.store.incr_with_expiry(burst_key, window + BURST_TTL_SLACK_SECONDS)

        if count <= self.config.burst_limit:
            return False

        await self.block_permanently(sender, cause="burst")
        await self._cleanup_sender_counters(sender, burst_key)
        logger.info(
            f"AbuseGuard: burst of {count} messages from {sender}",
            extra={"sender": sender, "burst_count": count},
        )
        return True

    async def _cleanup_sender_counters(self, sender: str, burst_key: str) -> None:
        # Block is already in place; leftover counters expire on their own
        try:
            await self.store.delete(keys.throttle(sender), burst_key)
        except StoreUnavailableError as e:
            logger.warning(f"AbuseGuard: counter cleanup failed for {sender}: {e}")

    async def _defensive_mode_active(self, now_ms: int) -> bool:
        window = self.config.flood_window_seconds
        flood_key = keys.unknown_flood(window_bucket(now_ms, window))
        count = await self.store.incr_with_expiry(flood_key, window + FLOOD_TTL_SLACK_SECONDS)

        if count > self.config.flood_threshold:
            await self.store.set(
                keys.DEFENSIVE_MODE, "1", ttl=self.config.defensive_mode_seconds
            )
            logger.warning(
                "AbuseGuard: defensive mode ENABLED (too many unknowns)",
                extra={
                    "event_type": "defensive_mode",
                    "unknown_count": count,
                    "window_seconds": window,
                },
            )

        return bool(await self.store.get(keys.DEFENSIVE_MODE))

    async def _record_suspicious(self, sender: str, now_ms: int) -> None:
        suspicious_key = keys.suspicious(sender, day_key(now_ms, self.config.timezone))
        count = await self.store.incr_with_expiry(
            suspicious_key, SUSPICIOUS_TTL_SECONDS, refresh=True
        )

        if count >= self.config.suspicious_threshold:
            await self.block_permanently(sender, cause="suspicious_content")
        else:
            logger.info(
                f"AbuseGuard: rejected suspicious message from {sender}",
                extra={"sender": sender, "suspicious_count": count},
            )
