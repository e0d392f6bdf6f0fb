"""
Centralized datetime and timezone utilities.

All timestamps written to the record store go through these helpers so the
sheet shows one consistent local time.
"""

from datetime import datetime
from typing import Any, Optional
import pytz

from config import settings

LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
TASK_ID_FORMAT = "%Y%m%d%H%M%S"


def get_local_tz() -> pytz.BaseTzInfo:
    """Get the configured local timezone."""
    return pytz.timezone(settings.timezone)


def get_local_now() -> datetime:
    """Get current time in local timezone (naive)."""
    local_tz = get_local_tz()
    return datetime.now(local_tz).replace(tzinfo=None)


def to_naive_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to naive local time.

    Args:
        dt: Datetime to convert (can be aware or naive)

    Returns:
        Naive datetime in local timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        local_dt = dt.astimezone(get_local_tz())
        return local_dt.replace(tzinfo=None)

    # Already naive, assume it's in local time
    return dt


def format_log_timestamp(dt: Optional[datetime] = None) -> str:
    """Timestamp prefix used for interaction log entries."""
    return (dt or get_local_now()).strftime(LOG_TIMESTAMP_FORMAT)


def now_iso() -> str:
    """Current local time as an ISO string for record fields."""
    return get_local_now().isoformat(timespec="seconds")


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a record field into a naive local datetime.

    Sheets hand back dates as ISO strings, "YYYY-MM-DD", the log timestamp
    format, or already-parsed datetimes.

    Returns:
        Naive local datetime, or None if the value is empty or unparseable
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return to_naive_local(value)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        return to_naive_local(datetime.fromisoformat(text))
    except ValueError:
        pass

    for fmt in (LOG_TIMESTAMP_FORMAT, "%Y-%m-%d", "%m/%d/%Y", "%m/%d/%Y %H:%M:%S"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return None
