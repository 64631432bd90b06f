"""Decision pipeline configuration."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateConfig:
    """Tunables consumed by the decision pipeline.

    Built from environment settings via ``Settings.gate_config()``; tests
    construct it directly.
    """

    secret_text: str = "PASSWORD"
    required_keyword: str = ""
    help_text: str = "Reply STOP to opt out."
    fallback_text: str = "We couldn't match this number to our guest list."

    # Throttle ledger
    cooldown_seconds: int = 180
    max_per_sender: int = 3
    per_sender_window_seconds: int = 86400
    global_max_per_day: int = 2000
    global_cap_applies_to_whitelist: bool = False
    timezone: str = "America/Los_Angeles"

    # Abuse guard
    burst_window_seconds: int = 60
    burst_limit: int = 5
    flood_window_seconds: int = 300
    flood_threshold: int = 20
    defensive_mode_seconds: int = 3600
    max_message_length: int = 160
    url_pattern: str = r"\bhttps?://"
    suspicious_threshold: int = 5
    origin_pattern: str = r"^\+1(?!900)[2-9]\d{2}[2-9]\d{6}$"

    # Opt-out ledger
    allow_keyword_rejoin: bool = True
    opt_out_ttl_seconds: int = 60 * 60 * 24 * 365

    def __post_init__(self) -> None:
        if self.allow_keyword_rejoin and not self.required_keyword:
            logger.warning(
                "Keyword rejoin enabled without a required keyword; rejoin is disabled"
            )

    @property
    def keyword_rejoin_enabled(self) -> bool:
        """Rejoin-by-keyword only applies when a gating keyword exists."""
        return self.allow_keyword_rejoin and bool(self.required_keyword)

    @property
    def burst_guard_enabled(self) -> bool:
        return self.burst_limit > 0 and self.burst_window_seconds > 0
