"""
Flight Filtering and Deduplication

Composable operations over normalized flight lists. None of them raise
for incomplete records.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from datetime import date, datetime, timedelta
import logging

from models.flight import FlightRecord, FlightDirection, CANCELLED_STATES
from utils.date_utils import local_date

logger = logging.getLogger(__name__)


@dataclass
class FilterCriteria:
    """Criteria for filter_flights; unset fields do not filter"""
    carrier_prefix: Optional[str] = None
    schedule_date: Optional[date] = None
    direction: Optional[FlightDirection] = None
    operational_only: bool = False


def is_operational(flight: FlightRecord) -> bool:
    """False only when every state code of the flight is a cancelled state"""
    return not all(state in CANCELLED_STATES for state in flight.state_codes)


def is_operated_by(flight: FlightRecord, carrier_prefix: str) -> bool:
    """Match on the operating carrier so codeshares are excluded"""
    return flight.operating_carrier_prefix.upper() == carrier_prefix.upper()


def filter_flights(flights: Iterable[FlightRecord], criteria: FilterCriteria) -> List[FlightRecord]:
    """
    Keep flights matching all supplied criteria

    Args:
        flights: Normalized flights
        criteria: Carrier prefix, local schedule date, direction and
            operational-state test

    Returns:
        Matching flights in input order
    """
    result = []
    for flight in flights:
        if criteria.carrier_prefix and not is_operated_by(flight, criteria.carrier_prefix):
            continue
        if criteria.schedule_date and local_date(flight.scheduled_time) != criteria.schedule_date:
            continue
        if criteria.direction and flight.direction != criteria.direction:
            continue
        if criteria.operational_only and not is_operational(flight):
            continue
        result.append(flight)
    return result


def _is_newer(candidate: FlightRecord, existing: FlightRecord) -> bool:
    if candidate.last_updated_at is None:
        return False
    if existing.last_updated_at is None:
        return True
    return candidate.last_updated_at > existing.last_updated_at


def deduplicate_flights(flights: Iterable[FlightRecord]) -> List[FlightRecord]:
    """
    Remove duplicate flights, keeping the most recently updated one per flight number

    A record without last_updated_at loses to any record that has one; on
    equal timestamps the first one encountered is kept. Output follows the
    order in which each flight number first appears.
    """
    latest: Dict[int, FlightRecord] = {}
    for flight in flights:
        existing = latest.get(flight.flight_number)
        if existing is None or _is_newer(flight, existing):
            latest[flight.flight_number] = flight
    return list(latest.values())


def remove_stale_flights(
    flights: Iterable[FlightRecord],
    max_age_hours: float,
    now: datetime
) -> List[FlightRecord]:
    """
    Drop flights last updated more than max_age_hours before now

    A flight exactly max_age_hours old is kept. Flights without
    last_updated_at are treated as fresh.
    """
    cutoff = now - timedelta(hours=max_age_hours)
    kept = [
        flight for flight in flights
        if flight.last_updated_at is None or flight.last_updated_at >= cutoff
    ]
    return kept


def group_by_gate(flights: Iterable[FlightRecord]) -> Dict[str, List[FlightRecord]]:
    """Group flights by gate, skipping flights without an assigned gate"""
    gates: Dict[str, List[FlightRecord]] = {}
    unassigned = 0
    for flight in flights:
        if not flight.has_gate:
            unassigned += 1
            continue
        gates.setdefault(flight.gate, []).append(flight)

    if unassigned:
        logger.debug(f"Skipped {unassigned} flights without gate assignment")

    return gates
