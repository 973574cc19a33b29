"""UTC time helpers. Store records carry epoch-millisecond integers."""

from datetime import datetime, timezone

MS_PER_MINUTE = 60 * 1000


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """Current instant as epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)
