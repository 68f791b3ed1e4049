"""
Input Validation Utilities

Validates query parameters accepted by the dashboard API.
"""

from typing import Optional
import re
from datetime import date

from app.errors import ValidationError
from utils.date_utils import parse_date

VALID_DIRECTIONS = ('D', 'A')


def validate_schedule_date(date_str: Optional[str]) -> Optional[date]:
    """
    Validate and parse a schedule date

    Args:
        date_str: Date string (YYYY-MM-DD preferred)

    Returns:
        Parsed date, or None when no date was given

    Raises:
        ValidationError: if the date cannot be parsed
    """
    if not date_str:
        return None

    parsed = parse_date(date_str)
    if not parsed:
        raise ValidationError(f"Invalid date format: {date_str}", field='date')

    return parsed


def validate_direction(direction: Optional[str]) -> Optional[str]:
    """Validate flight direction ('D' or 'A')"""
    if not direction:
        return None

    value = direction.strip().upper()
    if value not in VALID_DIRECTIONS:
        raise ValidationError(
            f"Invalid flight direction: {direction}",
            field='direction',
            details={'allowed': list(VALID_DIRECTIONS)}
        )
    return value


def validate_carrier_prefix(prefix: Optional[str]) -> Optional[str]:
    """Validate a 2-3 character IATA/ICAO carrier prefix"""
    if not prefix:
        return None

    value = prefix.strip().upper()
    if not re.match(r'^[A-Z0-9]{2,3}$', value):
        raise ValidationError(f"Invalid carrier prefix: {prefix}", field='airline')
    return value


def validate_limit(limit: Optional[str], maximum: int = 500) -> Optional[int]:
    """Validate a positive result limit"""
    if limit is None or limit == '':
        return None

    try:
        value = int(limit)
    except (TypeError, ValueError):
        raise ValidationError(f"Limit must be an integer: {limit}", field='limit')

    if value < 1 or value > maximum:
        raise ValidationError(f"Limit must be between 1 and {maximum}", field='limit')

    return value
