"""Opt-out ledger for carrier STOP/START keywords."""

import asyncio
import logging

from smsgate.domain import keys
from smsgate.infrastructure.store import CounterStore

logger = logging.getLogger(__name__)

DEFAULT_OPT_OUT_TTL_SECONDS = 60 * 60 * 24 * 365


class OptOutService:
    """Service for tracking which senders have opted out.

    The flag carries a long TTL; the index set lets operators enumerate
    opted-out senders.
    """

    def __init__(
        self,
        store: CounterStore,
        ttl_seconds: int = DEFAULT_OPT_OUT_TTL_SECONDS,
    ) -> None:
        """Initialize opt-out service.

        Args:
            store: Counter store
            ttl_seconds: Lifetime of an opt-out flag
        """
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def record_opt_out(self, sender: str) -> None:
        """Mark a sender as opted out. Safe to repeat."""
        await asyncio.gather(
            self.store.set(keys.opt_out(sender), "1", ttl=self.ttl_seconds),
            self.store.sadd(keys.OPT_OUT_INDEX, sender),
        )
        logger.info(f"Opt-out recorded for {sender}", extra={"sender": sender})

    async def clear_opt_out(self, sender: str) -> None:
        """Remove a sender's opt-out. No error if none exists."""
        removed, _ = await asyncio.gather(
            self.store.delete(keys.opt_out(sender)),
            self.store.srem(keys.OPT_OUT_INDEX, sender),
        )
        if removed:
            logger.info(f"Opt-out cleared for {sender}", extra={"sender": sender})

    async def is_opted_out(self, sender: str) -> bool:
        return bool(await self.store.get(keys.opt_out(sender)))
