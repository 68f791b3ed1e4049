"""
Delay Analyzer

Per-flight delay figures, aggregate delay statistics and hourly delay
trends. Aggregates do not depend on input order.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime

from models.flight import FlightRecord, FlightState
from utils.date_utils import format_time, minutes_between, to_amsterdam, isoformat_or_none, round_half_up

DELAY_THRESHOLD_MINUTES = 15
HIGH_VARIANCE_MINUTES = 15
MEDIUM_VARIANCE_MINUTES = 5


def delay_minutes(scheduled: datetime, reference: Optional[datetime]) -> int:
    """Minutes between scheduled and reference time, rounded half up"""
    if reference is None:
        return 0
    return minutes_between(scheduled, reference)


def reference_time(flight: FlightRecord) -> datetime:
    """Actual off-block, else estimated, else scheduled"""
    return flight.actual_time or flight.estimated_time or flight.scheduled_time


def flight_delay_minutes(flight: FlightRecord) -> int:
    return delay_minutes(flight.scheduled_time, reference_time(flight))


def is_delayed(flight: FlightRecord) -> bool:
    """Explicit DEL primary state, or a delay above the 15 minute threshold"""
    return (
        flight.primary_state == FlightState.DELAYED
        or flight_delay_minutes(flight) > DELAY_THRESHOLD_MINUTES
    )


def format_delay(minutes: int) -> str:
    """Format minutes as '1h 5m'; '0m' for no delay"""
    if minutes <= 0:
        return '0m'
    return f"{minutes // 60}h {minutes % 60}m"


@dataclass
class DelayedFlight:
    """A delayed flight with its computed delay"""
    flight: FlightRecord
    delay_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flight_name': self.flight.flight_name,
            'flight_number': self.flight.flight_number,
            'gate': self.flight.gate or 'UNASSIGNED',
            'pier': self.flight.pier or 'UNKNOWN',
            'destination': self.flight.destination or 'UNKNOWN',
            'aircraft_type': self.flight.aircraft_type or 'UNKNOWN',
            'scheduled_time': self.flight.scheduled_time.isoformat(),
            'scheduled_local': format_time(self.flight.scheduled_time),
            'expected_local': format_time(reference_time(self.flight)),
            'estimated_time': isoformat_or_none(self.flight.estimated_time),
            'actual_time': isoformat_or_none(self.flight.actual_time),
            'delay_minutes': self.delay_minutes,
            'delay_formatted': format_delay(self.delay_minutes),
            'primary_state': self.flight.primary_state,
            'state_codes': list(self.flight.state_codes)
        }


@dataclass
class DelaySummary:
    """Aggregate delay statistics over a flight set"""
    total_delayed: int = 0
    average_delay_minutes: int = 0
    total_delay_minutes: int = 0
    max_delay: Optional[DelayedFlight] = None
    flights: List[DelayedFlight] = field(default_factory=list)

    def worst(self, limit: Optional[int] = None) -> List[DelayedFlight]:
        return self.flights[:limit] if limit else list(self.flights)

    def to_dict(self, limit: Optional[int] = None) -> Dict[str, Any]:
        max_minutes = self.max_delay.delay_minutes if self.max_delay else 0
        return {
            'total_delayed_flights': self.total_delayed,
            'average_delay_minutes': self.average_delay_minutes,
            'total_delay_minutes': self.total_delay_minutes,
            'max_delay': {
                'minutes': max_minutes,
                'formatted': format_delay(max_minutes),
                'flight': self.max_delay.to_dict() if self.max_delay else None
            },
            'flights': [d.to_dict() for d in self.worst(limit)]
        }


def _canonical_key(item: DelayedFlight):
    return (-item.delay_minutes, item.flight.scheduled_time, item.flight.flight_number, item.flight.flight_name)


def analyze_delays(flights: Iterable[FlightRecord]) -> DelaySummary:
    """
    Aggregate delay statistics

    Delayed flights are ordered worst first (ties by schedule time, then
    flight number), so the summary is the same for any input ordering.
    Only flights running late count: an explicit DEL state with no
    positive delay is left out of the totals and the mean.
    """
    delayed = []
    for flight in flights:
        minutes = flight_delay_minutes(flight)
        if minutes > 0 and is_delayed(flight):
            delayed.append(DelayedFlight(flight=flight, delay_minutes=minutes))
    if not delayed:
        return DelaySummary()

    delayed.sort(key=_canonical_key)
    total = sum(d.delay_minutes for d in delayed)

    return DelaySummary(
        total_delayed=len(delayed),
        average_delay_minutes=round_half_up(total / len(delayed)),
        total_delay_minutes=total,
        max_delay=delayed[0],
        flights=delayed
    )


def _variance_label(average_delay: float) -> str:
    if average_delay > HIGH_VARIANCE_MINUTES:
        return 'High'
    if average_delay > MEDIUM_VARIANCE_MINUTES:
        return 'Medium'
    return 'Low'


def hourly_delay_trends(flights: Iterable[FlightRecord]) -> Dict[str, Any]:
    """
    Average positive delay per Amsterdam hour of scheduled departure

    Returns all 24 hours (empty hours report zero) plus summary figures.
    """
    buckets: Dict[int, List[int]] = {hour: [] for hour in range(24)}
    for flight in flights:
        hour = to_amsterdam(flight.scheduled_time).hour
        buckets[hour].append(max(0, flight_delay_minutes(flight)))

    hours = []
    for hour in range(24):
        delays = buckets[hour]
        average = sum(delays) / len(delays) if delays else 0.0
        hours.append({
            'hour': f"{hour:02d}:00",
            'range': f"{hour:02d}:00-{(hour + 1) % 24:02d}:00",
            'flights': len(delays),
            'total_delay_minutes': sum(delays),
            'average_delay': round(average, 1),
            'variance': _variance_label(average),
            'flagged': average > HIGH_VARIANCE_MINUTES
        })

    total_flights = sum(h['flights'] for h in hours)
    total_delay = sum(h['total_delay_minutes'] for h in hours)
    busy_hours = [h for h in hours if h['flights']]
    peak = max(busy_hours, key=lambda h: h['average_delay']) if busy_hours else None

    return {
        'summary': {
            'total_flights': total_flights,
            'average_delay': round(total_delay / total_flights, 1) if total_flights else 0.0,
            'peak_delay_hour': peak['range'] if peak else None,
            'high_variance_hours': sum(1 for h in hours if h['variance'] == 'High')
        },
        'hours': hours
    }
