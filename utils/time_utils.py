"""
utils/time_utils.py

Purpose: Time helpers

- Summary period windows
- Lenient date parsing for parser output and API input
- Session expiry checks
"""

from datetime import datetime, date, timedelta, timezone
from typing import Optional, Union


PERIOD_LABELS = {
    "week": "last 7 days",
    "month": "this month",
    "ytd": "this year",
}


def get_period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """
    Returns the start of the aggregation window for a summary period.

    week  - trailing 7 days from now
    month - first day of the current calendar month (00:00)
    ytd   - January 1 of the current year (00:00)
    """
    now = now or datetime.utcnow()

    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if period == "ytd":
        return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)

    raise ValueError(f"Unknown summary period: {period}")


def parse_datetime(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """
    Parses ISO dates ("2025-05-25") and datetimes into naive UTC datetimes.

    Returns None when the value is missing or unparseable.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_expired(last_update: Optional[datetime], timeout_minutes: int) -> bool:
    """
    Checks whether a timestamp is older than the timeout.
    A timeout of 0 or less never expires.
    """
    if timeout_minutes <= 0:
        return False
    if not last_update:
        return True
    return datetime.utcnow() > last_update + timedelta(minutes=timeout_minutes)
