"""
Gate State Classifier

Derives a gate's operational status, utilization and temporal phase from
the flights assigned to it and a reference time.

Status precedence is kept as an ordered rule table (STATUS_RULES). Rules are
tried in order over the gate's flights sorted by schedule time; the first
rule matched by any flight decides the status. Physical occupancy therefore
wins no matter which flight on a multi-flight hub gate triggered it.
"""

from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple
from datetime import datetime, timedelta
import re

from app.config import EngineConfig
from models.flight import FlightRecord, FlightState
from utils.date_utils import round_half_up
from models.gate import (
    GateSnapshot,
    GateStatus,
    GateType,
    GateUtilization,
    PhysicalActivity,
    TemporalPhase
)

OCCUPIED_STATES = frozenset({
    FlightState.BOARDING,
    FlightState.GATE_OPEN,
    FlightState.GATE_CLOSING,
    FlightState.GATE_CLOSED,
    FlightState.WAIT_IN_LOUNGE,
})

PHYSICALLY_ACTIVE_STATES = frozenset({
    FlightState.BOARDING,
    FlightState.GATE_OPEN,
    FlightState.GATE_CLOSING,
    FlightState.GATE_CLOSED,
    FlightState.DEPARTED,
})

# A delayed or gate-changed flight that has not started boarding is still scheduled
SCHEDULED_PRIMARY_STATES = frozenset({
    FlightState.SCHEDULED,
    FlightState.DELAYED,
    FlightState.GATE_CHANGE,
})

DEPARTED_WINDOW = timedelta(minutes=60)
CURRENT_WINDOW = timedelta(hours=2)
PRE_OPERATIONAL_HOURS = 1.5

SCHENGEN_PIERS = frozenset({'A', 'B', 'C'})
NON_SCHENGEN_PIERS = frozenset({'E', 'F', 'G', 'H', 'M'})


class GateContext(NamedTuple):
    gate_id: str
    now: datetime
    maintenance_gates: frozenset


def _is_occupying(ctx: GateContext, flight: FlightRecord) -> bool:
    return flight.has_state(*OCCUPIED_STATES)


def _is_under_maintenance(ctx: GateContext, flight: FlightRecord) -> bool:
    return ctx.gate_id.upper() in ctx.maintenance_gates


def _recently_departed(ctx: GateContext, flight: FlightRecord) -> bool:
    # Inclusive: a flight scheduled exactly 60 minutes ago still counts
    return (
        flight.has_state(FlightState.DEPARTED)
        and flight.scheduled_time >= ctx.now - DEPARTED_WINDOW
    )


def _is_scheduled(ctx: GateContext, flight: FlightRecord) -> bool:
    return flight.primary_state in SCHEDULED_PRIMARY_STATES


StatusRule = Tuple[Callable[[GateContext, FlightRecord], bool], GateStatus]

STATUS_RULES: Tuple[StatusRule, ...] = (
    (_is_occupying, GateStatus.OCCUPIED),
    (_is_under_maintenance, GateStatus.MAINTENANCE),
    (_recently_departed, GateStatus.DEPARTED),
    (_is_scheduled, GateStatus.SCHEDULED),
)

DEFAULT_STATUS = GateStatus.SCHEDULED


def sort_by_schedule(flights: Sequence[FlightRecord]) -> List[FlightRecord]:
    return sorted(flights, key=lambda f: f.scheduled_time)


def determine_gate_status(
    flights: Sequence[FlightRecord],
    now: datetime,
    gate_id: str = '',
    maintenance_gates: frozenset = frozenset()
) -> GateStatus:
    """
    Determine gate status from its flights

    Args:
        flights: Flights assigned to the gate
        now: Reference time
        gate_id: Gate identifier (used for the maintenance rule)
        maintenance_gates: Gates configured as closed for maintenance

    Returns:
        GateStatus; UNKNOWN for a gate without flights
    """
    if not flights:
        return GateStatus.UNKNOWN

    ctx = GateContext(gate_id=gate_id, now=now, maintenance_gates=maintenance_gates)
    ordered = sort_by_schedule(flights)

    for predicate, status in STATUS_RULES:
        if any(predicate(ctx, flight) for flight in ordered):
            return status

    return DEFAULT_STATUS


def is_physically_active(flight: FlightRecord) -> bool:
    return flight.has_state(*PHYSICALLY_ACTIVE_STATES)


def is_active_now(flight: FlightRecord, now: datetime) -> bool:
    """Physically active and scheduled within 2 hours of now"""
    return is_physically_active(flight) and abs(flight.scheduled_time - now) <= CURRENT_WINDOW


def calculate_current_utilization(
    flights: Sequence[FlightRecord],
    now: datetime,
    capacity: int = 3
) -> int:
    """Physically active flights within 2 hours of now, against a simultaneous capacity"""
    active = [flight for flight in flights if is_active_now(flight, now)]
    if not active or capacity <= 0:
        return 0
    return round_half_up(min(100.0, len(active) / capacity * 100))


def calculate_daily_utilization(
    flights: Sequence[FlightRecord],
    operational_hours: float = 16.0,
    turnaround_hours: float = 1.0
) -> int:
    """Flight count against daily capacity (operational hours / turnaround)"""
    if not flights or operational_hours <= 0:
        return 0
    return round_half_up(min(100.0, len(flights) * turnaround_hours / operational_hours * 100))


def hours_until_next_activity(flights: Sequence[FlightRecord], now: datetime) -> Optional[float]:
    """Hours until the next flight scheduled after now, None if there is none"""
    upcoming = [f.scheduled_time for f in flights if f.scheduled_time > now]
    if not upcoming:
        return None
    return (min(upcoming) - now).total_seconds() / 3600


def determine_temporal_phase(flights: Sequence[FlightRecord], now: datetime) -> TemporalPhase:
    if any(is_active_now(f, now) for f in flights):
        return TemporalPhase.ACTIVE

    hours = hours_until_next_activity(flights, now)
    if hours is None:
        return TemporalPhase.POST_OPERATIONAL
    if hours > PRE_OPERATIONAL_HOURS:
        return TemporalPhase.DEAD_ZONE
    return TemporalPhase.PRE_OPERATIONAL


def determine_physical_activity(flights: Sequence[FlightRecord]) -> PhysicalActivity:
    primaries = {f.primary_state for f in flights if f.primary_state in PHYSICALLY_ACTIVE_STATES}
    if not primaries:
        return PhysicalActivity.NONE
    if primaries & {FlightState.BOARDING, FlightState.GATE_OPEN}:
        return PhysicalActivity.BOARDING
    if FlightState.DEPARTED in primaries:
        return PhysicalActivity.DEPARTING
    return PhysicalActivity.OCCUPIED


def calculate_utilization(
    flights: Sequence[FlightRecord],
    now: datetime,
    config: Optional[EngineConfig] = None
) -> GateUtilization:
    """Build the utilization struct for a gate"""
    config = config or EngineConfig()
    return GateUtilization(
        current=calculate_current_utilization(flights, now, config.current_capacity),
        daily=calculate_daily_utilization(flights, config.operational_hours, config.turnaround_hours),
        logical=len(flights),
        temporal_phase=determine_temporal_phase(flights, now),
        physical_activity=determine_physical_activity(flights),
        hours_until_next_activity=hours_until_next_activity(flights, now)
    )


def classify_gate_type(gate: str, pier: str) -> GateType:
    """Schengen classification from Schiphol's pier layout"""
    gate = (gate or '').upper()
    pier = (pier or gate[:1]).upper()
    if not gate or not pier:
        return GateType.UNKNOWN

    if pier == 'D':
        digits = re.sub(r'\D', '', gate)
        if digits:
            number = int(digits)
            if 59 <= number <= 87:
                return GateType.SCHENGEN
            if 1 <= number <= 58:
                return GateType.NON_SCHENGEN
        return GateType.UNKNOWN

    if pier in SCHENGEN_PIERS:
        return GateType.SCHENGEN
    if pier in NON_SCHENGEN_PIERS:
        return GateType.NON_SCHENGEN
    return GateType.UNKNOWN


def build_gate_snapshot(
    gate_id: str,
    flights: Sequence[FlightRecord],
    now: datetime,
    config: Optional[EngineConfig] = None
) -> GateSnapshot:
    """Classify one gate and assemble its snapshot"""
    config = config or EngineConfig()
    ordered = sort_by_schedule(flights)
    pier = next((f.pier for f in ordered if f.pier), '')
    occupying = next((f for f in ordered if f.has_state(*OCCUPIED_STATES)), None)

    return GateSnapshot(
        gate_id=gate_id,
        pier=pier,
        flights=ordered,
        status=determine_gate_status(ordered, now, gate_id, config.maintenance_gates),
        utilization=calculate_utilization(ordered, now, config),
        gate_type=classify_gate_type(gate_id, pier),
        occupied_by=occupying.flight_name if occupying else None
    )
