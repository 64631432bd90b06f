"""Administrative operations on sender state.

These are the only paths that undo a permanent block or edit the whitelist;
the decision pipeline never calls them.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from smsgate.domain import keys
from smsgate.domain.services.opt_out_service import OptOutService
from smsgate.infrastructure.store import CounterStore

logger = logging.getLogger(__name__)


@dataclass
class UnblockResult:
    """Summary of an unblock operation."""

    phone: str
    removed_from_blocklist: bool
    burst_deleted: int
    suspicious_deleted: int = 0
    opt_out_cleared: bool = False
    deleted_keys: list[str] = field(default_factory=list)


class AdminService:
    """Service for operator actions: unblock and whitelist management."""

    def __init__(self, store: CounterStore):
        """Initialize admin service.

        Args:
            store: Counter store
        """
        self.store = store

    async def unblock(
        self,
        phone: str,
        clear_opt_out: bool = False,
        clear_history: bool = False,
    ) -> UnblockResult:
        """Lift a permanent block and reset the sender's counters.

        Args:
            phone: Canonical E.164 phone number
            clear_opt_out: Also clear a STOP opt-out (carriers still need START)
            clear_history: Also delete suspicious-content counters for past days

        Returns:
            UnblockResult describing what was removed
        """
        flag_deleted, index_removed = await asyncio.gather(
            self.store.delete(keys.block(phone)),
            self.store.srem(keys.ABUSE_INDEX, phone),
        )

        doomed = [keys.throttle(phone)]
        burst_keys = await self.store.scan_keys(keys.burst_pattern(phone))
        doomed.extend(burst_keys)
        suspicious_keys: list[str] = []
        if clear_history:
            suspicious_keys = await self.store.scan_keys(keys.suspicious_pattern(phone))
            doomed.extend(suspicious_keys)
        await self.store.delete(*doomed)

        if clear_opt_out:
            await OptOutService(self.store).clear_opt_out(phone)

        result = UnblockResult(
            phone=phone,
            removed_from_blocklist=bool(flag_deleted or index_removed),
            burst_deleted=len(burst_keys),
            suspicious_deleted=len(suspicious_keys),
            opt_out_cleared=clear_opt_out,
            deleted_keys=doomed,
        )
        logger.info(
            f"Unblocked {phone}",
            extra={
                "event_type": "sender_unblocked",
                "sender": phone,
                "removed_from_blocklist": result.removed_from_blocklist,
                "burst_deleted": result.burst_deleted,
            },
        )
        return result

    async def whitelist_add(self, phone: str) -> bool:
        """Add a phone to the whitelist. Returns True if it was not there yet."""
        added = await self.store.sadd(keys.WHITELIST, phone)
        logger.info(f"Whitelist add {phone}: added={bool(added)}", extra={"sender": phone})
        return bool(added)

    async def whitelist_remove(self, phone: str) -> bool:
        """Remove a phone from the whitelist. Returns True if it was present."""
        removed = await self.store.srem(keys.WHITELIST, phone)
        logger.info(f"Whitelist remove {phone}: removed={bool(removed)}", extra={"sender": phone})
        return bool(removed)
