"""Time bucketing helpers for counter keys."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def day_key(now_ms: int, tz_name: str) -> str:
    """Return the local calendar day (YYYY-MM-DD) for an epoch-millisecond time.

    The day boundary is midnight in ``tz_name``, not UTC.

    Examples:
        day_key(1735714800000, "UTC") -> "2025-01-01"
        day_key(1735714800000, "America/Los_Angeles") -> "2024-12-31"
    """
    moment = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name)).date().isoformat()


def window_bucket(now_ms: int, width_seconds: int) -> int:
    """Index of the fixed-width window containing ``now_ms``."""
    return now_ms // (width_seconds * 1000)
