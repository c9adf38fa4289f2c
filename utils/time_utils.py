"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Timezone-aware "now"
- Session cookie expiry calculations
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Returns the current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def cookie_expiry(days: int, now: Optional[datetime] = None) -> datetime:
    """
    Calculates the absolute expiry of a session cookie.
    """
    return (now or utcnow()) + timedelta(days=days)


def cookie_max_age(days: int) -> int:
    """
    Cookie lifetime in seconds.
    """
    return int(timedelta(days=days).total_seconds())
