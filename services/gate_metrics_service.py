"""
Gate Metrics Pipeline

Turns a batch of raw Schiphol flight records into the full gate report:
normalize, filter, deduplicate, drop stale records, classify each gate,
analyze delays and lay out the shared timeline.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional
from datetime import date, datetime
import logging

from app.config import EngineConfig
from models.flight import FlightDirection, FlightRecord
from models.gate import GateSnapshot, GateStatus
from services.delay_analyzer import DelaySummary, analyze_delays, hourly_delay_trends
from services.flight_filter import (
    FilterCriteria,
    deduplicate_flights,
    filter_flights,
    group_by_gate,
    remove_stale_flights
)
from services.gate_classifier import build_gate_snapshot
from services.gate_statistics import find_gate_changes, gate_changes_dict, gate_statistics
from services.timeline import (
    DisplayWindow,
    GateTimeline,
    build_gate_timeline,
    build_interval,
    compute_display_window,
    time_slots
)
from utils.date_utils import local_date, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class GateMetricsReport:
    """Everything derived from one refresh"""
    generated_at: datetime
    flights: List[FlightRecord]
    gates: List[GateSnapshot]
    delays: DelaySummary
    window: DisplayWindow
    timelines: List[GateTimeline]
    summary: Dict[str, Any]
    raw_count: int = 0

    def gate(self, gate_id: str) -> Optional[GateSnapshot]:
        gate_id = gate_id.upper()
        return next((g for g in self.gates if g.gate_id == gate_id), None)

    def hourly_trends(self) -> Dict[str, Any]:
        return hourly_delay_trends(self.flights)

    def gate_statistics(self, limit: Optional[int] = None) -> Dict[str, Any]:
        return gate_statistics(self.gates, limit)

    def gate_changes(self) -> Dict[str, Any]:
        return gate_changes_dict(find_gate_changes(self.gates, self.generated_at), self.generated_at)

    def to_dict(self, delay_limit: Optional[int] = None) -> Dict[str, Any]:
        return {
            'gates': [g.to_dict() for g in self.gates],
            'delayed_flights': self.delays.to_dict(delay_limit),
            'summary': self.summary,
            'metadata': {
                'analysis_time': self.generated_at.isoformat(),
                'data_source': 'Schiphol Public API',
                'raw_flights': self.raw_count,
                'flights_analyzed': len(self.flights),
                'gates_analyzed': len(self.gates)
            }
        }

    def timeline_dict(self) -> Dict[str, Any]:
        return {
            'window': self.window.to_dict(),
            'time_slots': [slot.isoformat() for slot in time_slots(self.window)],
            'gates': [t.to_dict(self.window) for t in self.timelines],
            'generated_at': self.generated_at.isoformat()
        }


def normalize_flights(raw_flights: Iterable[Mapping[str, Any]], now: datetime) -> List[FlightRecord]:
    """Normalize raw records, skipping anything that is not a mapping"""
    flights = []
    skipped = 0
    for raw in raw_flights:
        if not isinstance(raw, Mapping):
            skipped += 1
            continue
        flights.append(FlightRecord.from_api(raw, fallback_time=now))
    if skipped:
        logger.warning(f"Skipped {skipped} malformed flight records")
    return flights


def build_summary(gates: List[GateSnapshot], flights: List[FlightRecord]) -> Dict[str, Any]:
    status_breakdown = {status.value: 0 for status in GateStatus}
    for gate in gates:
        status_breakdown[gate.status.value] += 1

    piers = {g.pier for g in gates if g.pier}
    active_piers = {g.pier for g in gates if g.pier and g.status == GateStatus.OCCUPIED}
    average = (
        round_half_up(sum(g.utilization.current for g in gates) / len(gates))
        if gates else 0
    )

    return {
        'total_gates': len(gates),
        'total_piers': len(piers),
        'active_piers': len(active_piers),
        'status_breakdown': status_breakdown,
        'average_utilization': average,
        'total_flights': len(flights)
    }


def compute_gate_metrics(
    raw_flights: Iterable[Mapping[str, Any]],
    now: datetime,
    config: Optional[EngineConfig] = None,
    schedule_date: Optional[date] = None
) -> GateMetricsReport:
    """
    Run the full pipeline over one batch of raw records

    Args:
        raw_flights: Raw Schiphol flight dictionaries
        now: Reference time (timezone-aware)
        config: Engine settings (carrier, direction, stale age, capacity)
        schedule_date: Local schedule date to keep (default: today in Amsterdam)

    Returns:
        GateMetricsReport
    """
    config = config or EngineConfig()
    raw_flights = list(raw_flights)

    flights = normalize_flights(raw_flights, now)
    criteria = FilterCriteria(
        carrier_prefix=config.airline,
        schedule_date=schedule_date or local_date(now),
        direction=FlightDirection.from_string(config.direction),
        operational_only=True
    )
    flights = filter_flights(flights, criteria)
    flights = deduplicate_flights(flights)
    flights = remove_stale_flights(flights, config.stale_hours, now)

    grouped = group_by_gate(flights)
    gates = [
        build_gate_snapshot(gate_id, grouped[gate_id], now, config)
        for gate_id in sorted(grouped)
    ]

    delays = analyze_delays(flights)

    intervals = [build_interval(f, now) for gate in gates for f in gate.flights]
    window = compute_display_window(intervals, now)
    timelines = [build_gate_timeline(gate, now, window) for gate in gates]

    summary = build_summary(gates, flights)
    logger.info(
        f"Gate metrics: {len(raw_flights)} raw, {len(flights)} kept, "
        f"{len(gates)} gates, {delays.total_delayed} delayed"
    )

    return GateMetricsReport(
        generated_at=now,
        flights=flights,
        gates=gates,
        delays=delays,
        window=window,
        timelines=timelines,
        summary=summary,
        raw_count=len(raw_flights)
    )
