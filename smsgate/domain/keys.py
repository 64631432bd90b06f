"""Store key layout.

Every key is derived from the canonical sender (E.164) so admin tooling can
find and reset them.
"""

WHITELIST = "whitelist"
OPT_OUT_INDEX = "optedout:index"
ABUSE_INDEX = "abuse:index"
DEFENSIVE_MODE = "defensive:mode"

THROTTLE_COUNT_FIELD = "count"
THROTTLE_LAST_FIELD = "last"

# Daily counters outlive their day so late lookups still see them
DAILY_COUNTER_TTL_SECONDS = 172800


def opt_out(sender: str) -> str:
    return f"optout:{sender}"


def block(sender: str) -> str:
    return f"block:{sender}"


def burst(sender: str, bucket: int) -> str:
    return f"burst:{sender}:{bucket}"


def burst_pattern(sender: str) -> str:
    return f"burst:{sender}:*"


def unknown_flood(bucket: int) -> str:
    return f"unknownFlood:{bucket}"


def suspicious(sender: str, day: str) -> str:
    return f"suspicious:{sender}:{day}"


def suspicious_pattern(sender: str) -> str:
    return f"suspicious:{sender}:*"


def throttle(sender: str) -> str:
    return f"rl:num:{sender}"


def global_daily(day: str) -> str:
    return f"rl:global:{day}"
