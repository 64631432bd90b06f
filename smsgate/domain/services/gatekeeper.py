"""Decision pipeline for inbound SMS.

Order (first match wins):

1. STOP-class keyword: record opt-out, stay silent
2. HELP-class keyword: reply with help text
3. START-class keyword: clear opt-out, keep going
4. Still opted out: rejoin via gating keyword if allowed, else silent
5. Gating keyword missing: silent
6. Whitelisted: reply with the secret
7. Abuse guard rejects: silent
8. Throttle rejects: silent; otherwise record and reply with the fallback

Store failures propagate as StoreUnavailableError.
"""

import logging

from smsgate.core.phone import normalize_phone_e164
from smsgate.domain import keys
from smsgate.domain.models import Decision, GateConfig, Outcome
from smsgate.domain.services.abuse_guard import AbuseGuard
from smsgate.domain.services.compliance_handler import ComplianceAction, ComplianceHandler
from smsgate.domain.services.opt_out_service import OptOutService
from smsgate.domain.services.throttle_service import ThrottleService
from smsgate.infrastructure.store import CounterStore

logger = logging.getLogger(__name__)


class Gatekeeper:
    """Decides what, if anything, to send back for one inbound message."""

    def __init__(self, store: CounterStore, config: GateConfig) -> None:
        self.store = store
        self.config = config
        self.compliance = ComplianceHandler()
        self.opt_outs = OptOutService(store, ttl_seconds=config.opt_out_ttl_seconds)
        self.abuse_guard = AbuseGuard(store, config)
        self.throttle = ThrottleService(store, config)

    async def decide(self, sender_id: str | None, body: str | None, now_ms: int) -> Outcome:
        """Run the pipeline for one inbound message.

        Args:
            sender_id: Raw sender number as received from the carrier
            body: Raw message text
            now_ms: Current time in epoch milliseconds

        Returns:
            Outcome with the decision, reply text (if any) and reason

        Raises:
            StoreUnavailableError: If the counter store cannot be reached
        """
        sender = normalize_phone_e164(sender_id)
        if not sender:
            logger.info("Inbound message without a usable sender", extra={"raw_sender": sender_id})
            return Outcome.silent("invalid_sender")

        text = (body or "").strip()
        outcome = await self._decide(sender, text, now_ms)
        logger.info(
            f"Inbound SMS from {sender}: {outcome.decision.value} ({outcome.reason})",
            extra={
                "event_type": "sms_decision",
                "sender": sender,
                "decision": outcome.decision.value,
                "reason": outcome.reason,
            },
        )
        return outcome

    async def _decide(self, sender: str, text: str, now_ms: int) -> Outcome:
        config = self.config
        action = self.compliance.classify(text)

        if action is ComplianceAction.OPT_OUT:
            # Carrier handles the STOP confirmation; any local reply is billable
            await self.opt_outs.record_opt_out(sender)
            return Outcome.silent("opt_out")

        if action is ComplianceAction.HELP:
            return Outcome(decision=Decision.REPLY_HELP, reply=config.help_text, reason="help")

        if action is ComplianceAction.OPT_IN:
            await self.opt_outs.clear_opt_out(sender)

        has_keyword = self._has_required_keyword(text)

        if await self.opt_outs.is_opted_out(sender):
            if not (config.keyword_rejoin_enabled and has_keyword):
                return Outcome.silent("opted_out")
            await self.opt_outs.clear_opt_out(sender)
            logger.info(f"Sender {sender} rejoined via keyword", extra={"sender": sender})

        if config.required_keyword and not has_keyword:
            return Outcome.silent("missing_keyword")

        if await self.store.sismember(keys.WHITELIST, sender):
            return await self._reply_whitelisted(now_ms)

        guard = await self.abuse_guard.check(sender, text, now_ms)
        if not guard.allow:
            return Outcome.silent(guard.reason)

        verdict, state = await self.throttle.check(sender, now_ms)
        if not verdict.allow:
            return Outcome.silent(verdict.reason)

        await self.throttle.record_reply(state, now_ms)
        return Outcome(decision=Decision.REPLY_FALLBACK, reply=config.fallback_text, reason="unknown_sender")

    async def _reply_whitelisted(self, now_ms: int) -> Outcome:
        if self.config.global_cap_applies_to_whitelist:
            if await self.throttle.global_cap_reached(now_ms):
                return Outcome.silent("global_cap")
            await self.throttle.count_global_reply(now_ms)
        return Outcome(decision=Decision.REPLY_SECRET, reply=self.config.secret_text, reason="whitelisted")

    def _has_required_keyword(self, text: str) -> bool:
        keyword = self.config.required_keyword
        return bool(keyword) and keyword.upper() in text.upper()


async def decide(
    store: CounterStore,
    sender_id: str | None,
    body: str | None,
    now_ms: int,
    config: GateConfig,
) -> Outcome:
    """Convenience wrapper: build a Gatekeeper and decide one message."""
    return await Gatekeeper(store, config).decide(sender_id, body, now_ms)
