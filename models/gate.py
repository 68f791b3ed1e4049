"""
Gate Data Models

Derived view models for gate occupancy and the gate timeline.
All of them are rebuilt from scratch on each data refresh.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from models.flight import FlightRecord
from utils.date_utils import isoformat_or_none


class GateStatus(Enum):
    """Gate operational status"""
    SCHEDULED = "SCHEDULED"
    OCCUPIED = "OCCUPIED"
    DEPARTED = "DEPARTED"
    MAINTENANCE = "MAINTENANCE"
    UNKNOWN = "UNKNOWN"


class TemporalPhase(Enum):
    """Where the gate sits relative to its next activity"""
    DEAD_ZONE = "DEAD_ZONE"
    PRE_OPERATIONAL = "PRE_OPERATIONAL"
    ACTIVE = "ACTIVE"
    POST_OPERATIONAL = "POST_OPERATIONAL"


class PhysicalActivity(Enum):
    NONE = "NONE"
    BOARDING = "BOARDING"
    DEPARTING = "DEPARTING"
    OCCUPIED = "OCCUPIED"


class GateType(Enum):
    SCHENGEN = "SCHENGEN"
    NON_SCHENGEN = "NON_SCHENGEN"
    UNKNOWN = "UNKNOWN"


@dataclass
class GateUtilization:
    """Utilization figures for one gate"""
    current: int = 0                  # 0-100, physically active flights near now
    daily: int = 0                    # 0-100, flight count against daily capacity
    logical: int = 0                  # raw flight count
    temporal_phase: TemporalPhase = TemporalPhase.POST_OPERATIONAL
    physical_activity: PhysicalActivity = PhysicalActivity.NONE
    hours_until_next_activity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current': self.current,
            'daily': self.daily,
            'logical': self.logical,
            'temporal_phase': self.temporal_phase.value,
            'physical_activity': self.physical_activity.value,
            'hours_until_next_activity': (
                round(self.hours_until_next_activity, 2)
                if self.hours_until_next_activity is not None else None
            )
        }


@dataclass
class GateSnapshot:
    """State of one gate at a reference time"""
    gate_id: str
    pier: str
    flights: List[FlightRecord]
    status: GateStatus
    utilization: GateUtilization
    gate_type: GateType = GateType.UNKNOWN
    occupied_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gate_id': self.gate_id,
            'pier': self.pier or 'UNKNOWN',
            'gate_type': self.gate_type.value,
            'status': self.status.value,
            'occupied_by': self.occupied_by,
            'utilization': self.utilization.to_dict(),
            'flight_count': len(self.flights),
            'flights': [f.to_dict() for f in self.flights]
        }


@dataclass
class GateInterval:
    """Gate occupation interval of one flight"""
    flight: FlightRecord
    start_time: datetime
    end_time: datetime
    scheduled_time: datetime
    departure_time: datetime
    is_shifted: bool = False
    is_extended: bool = False
    lead_time_minutes: int = 60

    @property
    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True if any part of the interval falls inside [start, end]"""
        return self.end_time >= start and self.start_time <= end

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flight_name': self.flight.flight_name,
            'flight_number': self.flight.flight_number,
            'destination': self.flight.destination or 'UNKNOWN',
            'aircraft_type': self.flight.aircraft_type or 'UNKNOWN',
            'primary_state': self.flight.primary_state,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'scheduled_time': self.scheduled_time.isoformat(),
            'departure_time': isoformat_or_none(self.departure_time),
            'is_shifted': self.is_shifted,
            'is_extended': self.is_extended,
            'lead_time_minutes': self.lead_time_minutes,
            'duration_minutes': round(self.duration_minutes, 1)
        }


@dataclass
class LaneAssignment:
    """Intervals of one gate packed into non-overlapping lanes"""
    lanes: List[List[GateInterval]] = field(default_factory=list)

    @property
    def lane_count(self) -> int:
        return len(self.lanes)

    @property
    def max_concurrency(self) -> int:
        # Row height for rendering; an empty gate still takes one row
        return max(1, len(self.lanes))

    def to_dict(self) -> List[List[Dict[str, Any]]]:
        return [[interval.to_dict() for interval in lane] for lane in self.lanes]
