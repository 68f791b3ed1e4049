"""
Date Parsing and Manipulation Utilities

Provides consistent timestamp handling across the application.
Schiphol publishes local Amsterdam times with an offset; every datetime
returned from here is timezone-aware.
"""

from typing import Optional, Union
from datetime import datetime, date, timedelta
import math

import pytz

AMSTERDAM = pytz.timezone('Europe/Amsterdam')

_TIMESTAMP_FORMATS = [
    '%Y-%m-%dT%H:%M:%S.%f%z',
    '%Y-%m-%dT%H:%M:%S%z',
    '%Y-%m-%dT%H:%M%z',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
]


def localize(dt: datetime) -> datetime:
    """Attach the Amsterdam zone to naive datetimes, leave aware ones alone"""
    if dt.tzinfo is None:
        return AMSTERDAM.localize(dt)
    return dt


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an API timestamp into an aware datetime

    Accepts ISO-8601 strings with or without fractional seconds and offset
    (a trailing 'Z' is read as UTC). Naive values are taken as Amsterdam
    local time.

    Args:
        value: Timestamp string or datetime

    Returns:
        Aware datetime or None if the value is missing or invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return localize(value)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        return localize(datetime.fromisoformat(text))
    except ValueError:
        pass

    for fmt in _TIMESTAMP_FORMATS:
        try:
            return localize(datetime.strptime(text, fmt))
        except ValueError:
            continue

    return None


def combine_date_time(date_str: Optional[str], time_str: Optional[str]) -> Optional[datetime]:
    """Build a local timestamp from separate 'YYYY-MM-DD' and 'HH:MM[:SS]' fields"""
    if not date_str:
        return None
    return parse_timestamp(f"{date_str}T{time_str or '00:00:00'}")


def now_amsterdam() -> datetime:
    """Current time in Amsterdam"""
    return datetime.now(AMSTERDAM)


def to_amsterdam(dt: datetime) -> datetime:
    """Convert an aware datetime to Amsterdam local time"""
    return localize(dt).astimezone(AMSTERDAM)


def local_date(dt: datetime) -> date:
    """Amsterdam calendar date of a timestamp"""
    return to_amsterdam(dt).date()


def parse_date(date_str: str) -> Optional[date]:
    """
    Parse date string in various formats

    Supported formats:
    - YYYY-MM-DD
    - DD/MM/YYYY
    - DD-MM-YYYY
    - YYYYMMDD
    """
    if not date_str:
        return None

    date_str = str(date_str).strip()

    formats = [
        '%Y-%m-%d',
        '%d/%m/%Y',
        '%d-%m-%Y',
        '%Y%m%d',
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    return None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded half up (negative if end is earlier)"""
    return round_half_up((end - start).total_seconds() / 60)


def floor_to_half_hour(dt: datetime) -> datetime:
    """Round down to the previous :00 or :30 mark"""
    return dt.replace(minute=0 if dt.minute < 30 else 30, second=0, microsecond=0)


def ceil_to_half_hour(dt: datetime) -> datetime:
    """Round up to the next :00 or :30 mark"""
    base = dt.replace(second=0, microsecond=0)
    if base.minute == 0 and base == dt:
        return base
    if base.minute < 30 or (base.minute == 30 and base == dt):
        return base.replace(minute=30)
    return base.replace(minute=0) + timedelta(hours=1)


def format_time(dt: Optional[datetime]) -> str:
    """Format as HH:MM in Amsterdam time, 'n/v' when missing"""
    if dt is None:
        return 'n/v'
    return to_amsterdam(dt).strftime('%H:%M')


def isoformat_or_none(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None
