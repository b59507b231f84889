"""
Timestamp helpers.
Timestamps are stored as naive UTC DATETIME values and converted for display.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from wedding_api.config import settings


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (MySQL DATETIME has no zone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_display_timezone(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert a stored timestamp to the display timezone. Naive values are treated as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name or settings.DISPLAY_TIMEZONE))


def format_guestbook_date(value: datetime, tz_name: Optional[str] = None) -> str:
    """Format as 'YYYY. MM. DD HH:mm' in the display timezone."""
    return to_display_timezone(value, tz_name).strftime("%Y. %m. %d %H:%M")
