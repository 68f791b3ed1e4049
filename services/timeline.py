"""
Gate Timeline Builder

Computes each flight's gate-occupation interval and packs a gate's
intervals into non-overlapping lanes for the Gantt view.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from datetime import datetime, timedelta

from models.flight import FlightRecord, FlightState
from models.gate import GateInterval, GateSnapshot, LaneAssignment
from services.delay_analyzer import is_delayed
from utils.date_utils import floor_to_half_hour, ceil_to_half_hour

SHORT_HAUL_LEAD_MINUTES = 45
LONG_HAUL_LEAD_MINUTES = 60
WINDOW_PADDING = timedelta(minutes=15)
SLOT_MINUTES = 30
MIN_BAR_WIDTH_PERCENT = 3.0

# Intra-European destinations get the shorter gate lead time
EUROPEAN_DESTINATIONS = frozenset({
    'AMS', 'BRU', 'CDG', 'FRA', 'MAD', 'BCN', 'FCO', 'MXP', 'VIE', 'ZUR', 'ZRH',
    'MUC', 'DUS', 'HAM', 'STR', 'CGN', 'LEJ', 'NUE', 'SXF', 'TXL', 'HAJ',
    'BER', 'LHR', 'LGW', 'STN', 'LTN', 'LCY', 'NWI', 'MAN', 'EDI', 'GLA', 'BHX', 'LBA',
    'ARN', 'CPH', 'OSL', 'BGO', 'TRD', 'SVG', 'HEL', 'TLL', 'RIX', 'VNO', 'WAW',
    'KRK', 'GDN', 'WRO', 'PRG', 'BTS', 'BUD', 'SOF', 'OTP', 'LJU', 'ZAG',
    'ATH', 'SKG', 'HER', 'CFU', 'LIS', 'OPO', 'DUB', 'ORK', 'REY', 'KEF',
    'MME', 'GOT', 'LPI', 'SPU', 'LUX', 'MRS', 'TRN', 'BLQ', 'GVA', 'BSL',
    'LIN', 'BRE', 'SZG', 'INN', 'GRZ', 'VCE', 'TSF', 'NAP',
    'CTA', 'PMO', 'CAG', 'ALC', 'AGP', 'LEI', 'BIO', 'SDR', 'VGO', 'LCG',
    'TLS', 'BOD', 'NCE', 'LYS', 'MPL', 'NTE', 'RNS', 'BIQ', 'EXT',
})


def is_short_haul(destination: str) -> bool:
    return (destination or '').upper() in EUROPEAN_DESTINATIONS


def gate_lead_minutes(short_haul: bool) -> int:
    return SHORT_HAUL_LEAD_MINUTES if short_haul else LONG_HAUL_LEAD_MINUTES


def departure_time(flight: FlightRecord) -> datetime:
    """
    Actual off-block if known; cancelled flights never shift; otherwise
    the estimate, falling back to the schedule.
    """
    if flight.actual_time:
        return flight.actual_time
    if flight.is_cancelled:
        return flight.scheduled_time
    return flight.estimated_time or flight.scheduled_time


def build_interval(
    flight: FlightRecord,
    now: datetime,
    short_haul: Optional[bool] = None
) -> GateInterval:
    """
    Gate-occupation interval for one flight

    The gate opens relative to the original schedule even when the flight
    later slips. A closed gate (GTD) with no actual off-block past its
    nominal departure keeps growing until now. Degenerate intervals
    (end before start) are returned unchanged.

    Args:
        flight: Normalized flight
        now: Reference time
        short_haul: Override lead-time class (default: from destination)
    """
    if short_haul is None:
        short_haul = is_short_haul(flight.destination)
    lead = gate_lead_minutes(short_haul)

    departure = departure_time(flight)
    start = flight.scheduled_time - timedelta(minutes=lead)
    end = departure
    extended = False

    if (
        flight.primary_state == FlightState.GATE_CLOSED
        and flight.actual_time is None
        and now > departure
    ):
        end = now
        extended = True

    return GateInterval(
        flight=flight,
        start_time=start,
        end_time=end,
        scheduled_time=flight.scheduled_time,
        departure_time=departure,
        is_shifted=is_delayed(flight) and flight.estimated_time is not None,
        is_extended=extended,
        lead_time_minutes=lead
    )


def assign_lanes(intervals: Iterable[GateInterval]) -> LaneAssignment:
    """
    Greedy interval partitioning

    Intervals are taken in start order; each goes into the first lane (in
    creation order) whose last interval ends at or before its start,
    otherwise a new lane is opened.
    """
    lanes: List[List[GateInterval]] = []
    for interval in sorted(intervals, key=lambda i: i.start_time):
        for lane in lanes:
            if lane[-1].end_time <= interval.start_time:
                lane.append(interval)
                break
        else:
            lanes.append([interval])
    return LaneAssignment(lanes=lanes)


@dataclass
class DisplayWindow:
    start: datetime
    end: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    def to_dict(self) -> Dict[str, str]:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}


def compute_display_window(intervals: Sequence[GateInterval], now: datetime) -> DisplayWindow:
    """
    Window covering all intervals, padded by 15 minutes and rounded out
    to half-hour marks. Without intervals: two hours back, four ahead.
    """
    if not intervals:
        return DisplayWindow(
            start=floor_to_half_hour(now - timedelta(hours=2)),
            end=ceil_to_half_hour(now + timedelta(hours=4))
        )

    earliest = min(i.start_time for i in intervals)
    latest = max(max(i.end_time, i.start_time) for i in intervals)
    return DisplayWindow(
        start=floor_to_half_hour(earliest - WINDOW_PADDING),
        end=ceil_to_half_hour(latest + WINDOW_PADDING)
    )


def time_slots(window: DisplayWindow, minutes: int = SLOT_MINUTES) -> List[datetime]:
    """Slot marks from window start to end inclusive"""
    slots = []
    current = window.start
    step = timedelta(minutes=minutes)
    while current <= window.end:
        slots.append(current)
        current += step
    return slots


def intervals_in_window(intervals: Iterable[GateInterval], window: DisplayWindow) -> List[GateInterval]:
    return [i for i in intervals if i.overlaps(window.start, window.end)]


def bar_geometry(
    interval: GateInterval,
    window: DisplayWindow,
    min_width_percent: float = MIN_BAR_WIDTH_PERCENT
) -> Tuple[float, float]:
    """
    Left offset and width of an interval bar as percentages of the window

    Width is clamped to min_width_percent so degenerate intervals stay
    visible.
    """
    total = window.duration_seconds
    if total <= 0:
        return 0.0, min_width_percent

    left = (interval.start_time - window.start).total_seconds() / total * 100
    right = (interval.end_time - window.start).total_seconds() / total * 100
    left = min(100.0, max(0.0, left))
    right = min(100.0, right)
    return left, max(right - left, min_width_percent)


@dataclass
class GateTimeline:
    gate_id: str
    pier: str
    intervals: List[GateInterval] = field(default_factory=list)
    lanes: LaneAssignment = field(default_factory=LaneAssignment)

    def to_dict(self, window: Optional[DisplayWindow] = None) -> Dict[str, Any]:
        lanes = []
        for lane in self.lanes.lanes:
            rendered = []
            for interval in lane:
                item = interval.to_dict()
                if window is not None:
                    left, width = bar_geometry(interval, window)
                    item['left_percent'] = round(left, 2)
                    item['width_percent'] = round(width, 2)
                rendered.append(item)
            lanes.append(rendered)
        return {
            'gate_id': self.gate_id,
            'pier': self.pier or 'UNKNOWN',
            'max_concurrency': self.lanes.max_concurrency,
            'lanes': lanes
        }


def build_gate_timeline(
    snapshot: GateSnapshot,
    now: datetime,
    window: Optional[DisplayWindow] = None
) -> GateTimeline:
    """Intervals of one gate, clipped to the window and packed into lanes"""
    intervals = [build_interval(flight, now) for flight in snapshot.flights]
    if window is not None:
        intervals = intervals_in_window(intervals, window)
    return GateTimeline(
        gate_id=snapshot.gate_id,
        pier=snapshot.pier,
        intervals=intervals,
        lanes=assign_lanes(intervals)
    )
