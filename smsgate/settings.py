"""Application settings using Pydantic BaseSettings."""

import re

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smsgate.domain.models.gate_config import GateConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis (optional for local dev; counters fall back to process memory)
    redis_url: str = "redis://localhost:6379/0"
    redis_enabled: bool = False
    redis_socket_timeout_seconds: float = 2.0

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Twilio (inbound webhook signature validation)
    twilio_auth_token: str | None = None

    # Admin endpoints
    admin_token: str | None = None

    # Replies
    site_password: str = "PASSWORD"
    secret_reply_template: str = "Thanks! Here's the wedding site password: {password}"
    help_text: str = "Wedding info SMS helper. Reply STOP to opt out."
    fallback_text: str = (
        "We couldn't match this number to our guest list. "
        "If this is a mistake, please text back your full name."
    )

    # Keyword gate
    required_text_keyword: str = ""
    allow_password_rejoin: bool = True

    # Throttle ledger
    min_reply_cooldown_min: int = 3
    max_per_number_per_day: int = 3
    per_number_window_seconds: int = 86400
    global_max_per_day: int = 2000
    global_cap_applies_to_whitelist: bool = False
    day_timezone: str = "America/Los_Angeles"

    # Abuse guard
    burst_window_seconds: int = 60
    max_messages_per_number: int = 5
    unknown_window_minutes: int = 5
    unknown_message_threshold: int = 20
    defensive_mode_duration_sec: int = 3600
    max_message_length: int = 160
    url_pattern: str = r"\bhttps?://"
    suspicious_threshold: int = 5
    origin_pattern: str = r"^\+1(?!900)[2-9]\d{2}[2-9]\d{6}$"

    # Opt-out ledger
    opt_out_ttl_seconds: int = 60 * 60 * 24 * 365

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("url_pattern", "origin_pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        re.compile(value)
        return value

    def gate_config(self) -> GateConfig:
        """Build the decision pipeline configuration from settings."""
        return GateConfig(
            secret_text=self.secret_reply_template.format(password=self.site_password),
            required_keyword=self.required_text_keyword.strip(),
            help_text=self.help_text,
            fallback_text=self.fallback_text,
            cooldown_seconds=self.min_reply_cooldown_min * 60,
            max_per_sender=self.max_per_number_per_day,
            per_sender_window_seconds=self.per_number_window_seconds,
            global_max_per_day=self.global_max_per_day,
            global_cap_applies_to_whitelist=self.global_cap_applies_to_whitelist,
            burst_window_seconds=self.burst_window_seconds,
            burst_limit=self.max_messages_per_number,
            flood_window_seconds=self.unknown_window_minutes * 60,
            flood_threshold=self.unknown_message_threshold,
            defensive_mode_seconds=self.defensive_mode_duration_sec,
            max_message_length=self.max_message_length,
            url_pattern=self.url_pattern,
            suspicious_threshold=self.suspicious_threshold,
            allow_keyword_rejoin=self.allow_password_rejoin,
            origin_pattern=self.origin_pattern,
            opt_out_ttl_seconds=self.opt_out_ttl_seconds,
            timezone=self.day_timezone,
        )


settings = Settings()
