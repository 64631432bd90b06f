"""Compliance handler for SMS carrier keywords (STOP, START, HELP)."""

import re
from enum import Enum


class ComplianceAction(str, Enum):
    """Classification of an inbound message's compliance keywords."""

    OPT_OUT = "opt_out"
    OPT_IN = "opt_in"
    HELP = "help"
    NONE = "none"


class ComplianceHandler:
    """Handler for SMS compliance keywords.

    Keywords match whole words, case-insensitively, so "STOP!" matches but
    "SEND" does not match END.
    """

    # Compliance keywords (case-insensitive)
    STOP_KEYWORDS = frozenset({"stop", "stopall", "unsubscribe", "cancel", "end", "quit"})
    OPT_IN_KEYWORDS = frozenset({"start", "unstop", "yes"})
    HELP_KEYWORDS = frozenset({"help", "info"})

    @staticmethod
    def _words(message: str | None) -> set[str]:
        return set(re.findall(r"[a-z0-9]+", (message or "").lower()))

    def classify(self, message: str | None) -> ComplianceAction:
        """Classify message for compliance keywords.

        Precedence is OPT_OUT, then HELP, then OPT_IN: a message carrying both
        a stop word and a help word is an opt-out.

        Args:
            message: User message text

        Returns:
            ComplianceAction for the message
        """
        words = self._words(message)

        if words & self.STOP_KEYWORDS:
            return ComplianceAction.OPT_OUT
        if words & self.HELP_KEYWORDS:
            return ComplianceAction.HELP
        if words & self.OPT_IN_KEYWORDS:
            return ComplianceAction.OPT_IN
        return ComplianceAction.NONE
