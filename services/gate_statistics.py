"""
Gate and Pier Statistics

Busiest-gate ranking, per-pier load and the gate-change board, all derived
from the classified gate snapshots of one report.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime

from models.flight import FlightRecord, FlightState, describe_state
from models.gate import GateSnapshot, GateStatus
from services.delay_analyzer import flight_delay_minutes, is_delayed
from utils.date_utils import format_time, minutes_between

BUSY_GATE_FLIGHTS = 10
MODERATE_GATE_FLIGHTS = 5

# Daily departures that count as a fully used pier
PIER_DAILY_CAPACITY = 20
HIGH_PIER_UTILIZATION = 80
MEDIUM_PIER_UTILIZATION = 60

PRIORITY_WINDOW_MINUTES = 60


def gate_load(flight_count: int) -> str:
    if flight_count > BUSY_GATE_FLIGHTS:
        return 'Busy'
    if flight_count > MODERATE_GATE_FLIGHTS:
        return 'Moderate'
    return 'Available'


def pier_load(utilization: float) -> str:
    if utilization > HIGH_PIER_UTILIZATION:
        return 'High'
    if utilization > MEDIUM_PIER_UTILIZATION:
        return 'Medium'
    return 'Low'


def _next_flight_label(flights: Sequence[FlightRecord]) -> Optional[str]:
    if not flights:
        return None
    first = min(flights, key=lambda f: f.scheduled_time)
    return f"{first.flight_name} ({format_time(first.scheduled_time)})"


def rank_gates(gates: Sequence[GateSnapshot], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Gates ordered busiest first

    Ties are broken by gate id so the ranking is stable between refreshes.
    """
    ordered = sorted(gates, key=lambda g: (-len(g.flights), g.gate_id))
    if limit:
        ordered = ordered[:limit]

    return [
        {
            'rank': position,
            'gate_id': gate.gate_id,
            'pier': gate.pier or 'UNKNOWN',
            'gate_type': gate.gate_type.value,
            'status': gate.status.value,
            'flights': len(gate.flights),
            'load': gate_load(len(gate.flights)),
            'daily_utilization': gate.utilization.daily,
            'next_flight': _next_flight_label(gate.flights)
        }
        for position, gate in enumerate(ordered, start=1)
    ]


def pier_statistics(gates: Sequence[GateSnapshot]) -> List[Dict[str, Any]]:
    """Flights, gates and utilization per pier, busiest pier first"""
    piers: Dict[str, List[GateSnapshot]] = {}
    for gate in gates:
        piers.setdefault(gate.pier or 'UNKNOWN', []).append(gate)

    stats = []
    for pier, pier_gates in piers.items():
        flight_count = sum(len(g.flights) for g in pier_gates)
        utilization = min(100.0, flight_count / PIER_DAILY_CAPACITY * 100)
        stats.append({
            'pier': pier,
            'gates': len(pier_gates),
            'flights': flight_count,
            'occupied_gates': sum(1 for g in pier_gates if g.status == GateStatus.OCCUPIED),
            'utilization': round(utilization, 1),
            'load': pier_load(utilization)
        })

    stats.sort(key=lambda p: (-p['flights'], p['pier']))
    return stats


def gate_statistics(gates: Sequence[GateSnapshot], limit: Optional[int] = None) -> Dict[str, Any]:
    """Busiest gates, per-pier figures and their summary"""
    piers = pier_statistics(gates)
    ranked = rank_gates(gates)
    average = sum(p['utilization'] for p in piers) / len(piers) if piers else 0.0

    return {
        'summary': {
            'total_gates': len(gates),
            'total_piers': len(piers),
            'total_flights': sum(len(g.flights) for g in gates),
            'average_pier_utilization': round(average, 1),
            'busiest_gate': ranked[0]['gate_id'] if ranked else None,
            'busiest_pier': piers[0]['pier'] if piers else None
        },
        'gates': ranked[:limit] if limit else ranked,
        'piers': piers
    }


@dataclass
class GateChange:
    """A departure that has been moved to another gate"""
    flight: FlightRecord
    minutes_until_departure: int
    delay_minutes: int
    is_delayed: bool

    @property
    def is_priority(self) -> bool:
        return 0 < self.minutes_until_departure < PRIORITY_WINDOW_MINUTES

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flight_name': self.flight.flight_name,
            'flight_number': self.flight.flight_number,
            'current_gate': self.flight.gate,
            'pier': self.flight.pier or 'UNKNOWN',
            'destination': self.flight.destination or 'UNKNOWN',
            'aircraft_type': self.flight.aircraft_type or 'UNKNOWN',
            'scheduled_time': self.flight.scheduled_time.isoformat(),
            'scheduled_local': format_time(self.flight.scheduled_time),
            'minutes_until_departure': self.minutes_until_departure,
            'is_priority': self.is_priority,
            'is_delayed': self.is_delayed,
            'delay_minutes': self.delay_minutes,
            'state_codes': list(self.flight.state_codes),
            'states_readable': [describe_state(code) for code in self.flight.state_codes]
        }


def find_gate_changes(gates: Sequence[GateSnapshot], now: datetime) -> List[GateChange]:
    """Flights carrying GCH on an assigned gate, soonest departure first"""
    changes = [
        GateChange(
            flight=flight,
            minutes_until_departure=minutes_between(now, flight.scheduled_time),
            delay_minutes=max(0, flight_delay_minutes(flight)),
            is_delayed=is_delayed(flight)
        )
        for gate in gates
        for flight in gate.flights
        if flight.has_state(FlightState.GATE_CHANGE)
    ]
    changes.sort(key=lambda c: (c.minutes_until_departure, c.flight.flight_name))
    return changes


def gate_changes_dict(changes: Sequence[GateChange], now: datetime) -> Dict[str, Any]:
    return {
        'gate_changes': [c.to_dict() for c in changes],
        'metadata': {
            'total': len(changes),
            'urgent': sum(1 for c in changes if c.is_priority),
            'delayed': sum(1 for c in changes if c.is_delayed),
            'timestamp': now.isoformat(),
            'local_time': format_time(now)
        }
    }
