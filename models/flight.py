"""
Flight Data Models

Defines the canonical flight record and the Schiphol state codes.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any, Mapping
from datetime import datetime
from enum import Enum
import re

from utils.date_utils import (
    parse_timestamp,
    combine_date_time,
    now_amsterdam,
    localize,
    isoformat_or_none
)


class FlightDirection(Enum):
    """Flight direction as published by Schiphol"""
    DEPARTURE = "D"
    ARRIVAL = "A"

    @classmethod
    def from_string(cls, value: Any) -> 'FlightDirection':
        """Parse direction, default to departure"""
        if isinstance(value, str) and value.strip().upper() == 'A':
            return cls.ARRIVAL
        return cls.DEPARTURE


class FlightState:
    """Public flight state codes"""
    SCHEDULED = 'SCH'
    DELAYED = 'DEL'
    WAIT_IN_LOUNGE = 'WIL'
    GATE_OPEN = 'GTO'
    BOARDING = 'BRD'
    GATE_CLOSING = 'GCL'
    GATE_CLOSED = 'GTD'
    DEPARTED = 'DEP'
    CANCELLED = 'CNX'
    GATE_CHANGE = 'GCH'
    TOMORROW = 'TOM'
    FIRST_INFO = 'FIR'
    TIME_DEVIATION = 'STD'
    UNKNOWN = 'UNKNOWN'

    DESCRIPTIONS = {
        'SCH': 'Flight Scheduled',
        'DEL': 'Delayed',
        'WIL': 'Wait in Lounge',
        'GTO': 'Gate Open',
        'BRD': 'Boarding',
        'GCL': 'Gate Closing',
        'GTD': 'Gate Closed',
        'DEP': 'Departed',
        'CNX': 'Cancelled',
        'GCH': 'Gate Change',
        'TOM': 'Tomorrow',
        'FIR': 'First Time Information',
        'STD': 'State Time Deviation',
    }


CANCELLED_STATES = frozenset({FlightState.CANCELLED})
UNASSIGNED_GATES = frozenset({'', 'TBD'})


def describe_state(code: str) -> str:
    """Human-readable description of a state code"""
    return FlightState.DESCRIPTIONS.get(code, 'Unknown')


def _nested(data: Mapping, *keys) -> Any:
    """Walk nested mappings, returning None on any missing level"""
    current: Any = data
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _first_str(values: Any) -> str:
    if isinstance(values, (list, tuple)) and values and isinstance(values[0], str):
        return values[0]
    return ''


def _as_str(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _carrier_prefix(flight_name: str) -> str:
    match = re.match(r'^([A-Z0-9]{2})(?=\d)|^([A-Z]+)', flight_name.upper())
    if not match:
        return ''
    return match.group(1) or match.group(2)


def _resolve_aircraft_type(raw: Mapping) -> str:
    value = raw.get('aircraftType')
    if isinstance(value, Mapping):
        return _as_str(value.get('iataMain')) or _as_str(value.get('iataSub'))
    if isinstance(value, str):
        return value.strip()
    return ''


def _resolve_states(raw: Mapping) -> Tuple[str, ...]:
    states = _nested(raw, 'publicFlightState', 'flightStates')
    if not states:
        states = raw.get('flightStates')
    if not isinstance(states, (list, tuple)):
        return (FlightState.UNKNOWN,)
    codes = tuple(s.strip().upper() for s in states if isinstance(s, str) and s.strip())
    return codes or (FlightState.UNKNOWN,)


@dataclass
class FlightRecord:
    """Canonical flight record (post-normalization)"""
    flight_name: str
    flight_number: int
    direction: FlightDirection
    scheduled_time: datetime
    estimated_time: Optional[datetime] = None
    actual_time: Optional[datetime] = None
    state_codes: Tuple[str, ...] = (FlightState.UNKNOWN,)
    aircraft_type: str = ''
    destination: str = ''
    gate: str = ''
    pier: str = ''
    last_updated_at: Optional[datetime] = None
    operating_carrier_prefix: str = ''
    main_flight: str = ''

    @classmethod
    def from_api(cls, raw: Any, fallback_time: Optional[datetime] = None) -> 'FlightRecord':
        """
        Create from a raw Schiphol API flight object

        The upstream shape varies (nested or flat fields, aircraft type as an
        object or a bare string). Every field falls back to a typed default,
        so this never raises.

        Args:
            raw: Flight object as decoded from JSON
            fallback_time: Schedule time used when the record has none
                (default: now in Amsterdam)
        """
        if not isinstance(raw, Mapping):
            raw = {}

        flight_name = _as_str(raw.get('flightName'))
        main_flight = _as_str(raw.get('mainFlight'))

        scheduled = (
            parse_timestamp(raw.get('scheduleDateTime'))
            or combine_date_time(raw.get('scheduleDate'), raw.get('scheduleTime'))
            or (localize(fallback_time) if fallback_time else None)
            or now_amsterdam()
        )

        operating_prefix = (
            _carrier_prefix(main_flight)
            or _as_str(raw.get('prefixIATA')).upper()
            or _carrier_prefix(flight_name)
        )

        route_destination = _first_str(_nested(raw, 'route', 'destinations'))

        return cls(
            flight_name=flight_name,
            flight_number=_as_int(raw.get('flightNumber')),
            direction=FlightDirection.from_string(raw.get('flightDirection')),
            scheduled_time=scheduled,
            estimated_time=(
                parse_timestamp(raw.get('publicEstimatedOffBlockTime'))
                or parse_timestamp(raw.get('estimatedOffBlockTime'))
            ),
            actual_time=parse_timestamp(raw.get('actualOffBlockTime')),
            state_codes=_resolve_states(raw),
            aircraft_type=_resolve_aircraft_type(raw),
            destination=route_destination or _first_str(raw.get('destinations')),
            gate=_as_str(raw.get('gate')).upper(),
            pier=_as_str(raw.get('pier')).upper(),
            last_updated_at=(
                parse_timestamp(raw.get('lastUpdatedAt'))
                or parse_timestamp(raw.get('updatedAt'))
            ),
            operating_carrier_prefix=operating_prefix,
            main_flight=main_flight
        )

    @property
    def primary_state(self) -> str:
        return self.state_codes[0] if self.state_codes else FlightState.UNKNOWN

    def has_state(self, *codes: str) -> bool:
        """True if any of the given codes is among the flight's states"""
        return any(code in self.state_codes for code in codes)

    @property
    def is_cancelled(self) -> bool:
        return FlightState.CANCELLED in self.state_codes

    @property
    def has_gate(self) -> bool:
        return self.gate not in UNASSIGNED_GATES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'flight_name': self.flight_name,
            'flight_number': self.flight_number,
            'direction': self.direction.value,
            'scheduled_time': self.scheduled_time.isoformat(),
            'estimated_time': isoformat_or_none(self.estimated_time),
            'actual_time': isoformat_or_none(self.actual_time),
            'state_codes': list(self.state_codes),
            'states_readable': [describe_state(s) for s in self.state_codes],
            'primary_state': self.primary_state,
            'primary_state_readable': describe_state(self.primary_state),
            'aircraft_type': self.aircraft_type or 'UNKNOWN',
            'destination': self.destination or 'UNKNOWN',
            'gate': self.gate,
            'pier': self.pier,
            'last_updated_at': isoformat_or_none(self.last_updated_at),
            'operating_carrier': self.operating_carrier_prefix,
            'main_flight': self.main_flight
        }
