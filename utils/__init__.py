"""
Utility Functions Package
"""

from utils.validators import (
    validate_schedule_date,
    validate_direction,
    validate_carrier_prefix,
    validate_limit
)
from utils.date_utils import (
    AMSTERDAM,
    parse_timestamp,
    parse_date,
    now_amsterdam,
    local_date,
    minutes_between
)

__all__ = [
    'validate_schedule_date',
    'validate_direction',
    'validate_carrier_prefix',
    'validate_limit',
    'AMSTERDAM',
    'parse_timestamp',
    'parse_date',
    'now_amsterdam',
    'local_date',
    'minutes_between'
]
