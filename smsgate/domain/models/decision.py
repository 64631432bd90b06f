"""Decision pipeline result types."""

from dataclasses import dataclass
from enum import Enum


class Decision(str, Enum):
    """Terminal outcome of an inbound message."""

    REPLY_SECRET = "reply_secret"
    REPLY_HELP = "reply_help"
    REPLY_FALLBACK = "reply_fallback"
    SILENT = "silent"


@dataclass(frozen=True)
class Outcome:
    """What to do with an inbound message.

    ``reply`` is set for every decision except ``SILENT``. ``reason`` is a short
    machine-readable tag for logs (e.g. ``"cooldown"``, ``"blocked"``).
    """

    decision: Decision
    reply: str | None = None
    reason: str = ""

    @property
    def is_silent(self) -> bool:
        return self.decision is Decision.SILENT

    @classmethod
    def silent(cls, reason: str) -> "Outcome":
        return cls(decision=Decision.SILENT, reply=None, reason=reason)


@dataclass(frozen=True)
class GuardResult:
    """Result of an abuse guard or throttle check."""

    allow: bool
    reason: str = "ok"
