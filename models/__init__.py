"""
Models Package - Data Models and Interfaces
"""

from models.flight import (
    FlightDirection,
    FlightState,
    FlightRecord,
    CANCELLED_STATES,
    describe_state
)

from models.gate import (
    GateStatus,
    TemporalPhase,
    PhysicalActivity,
    GateType,
    GateUtilization,
    GateSnapshot,
    GateInterval,
    LaneAssignment
)

__all__ = [
    'FlightDirection',
    'FlightState',
    'FlightRecord',
    'CANCELLED_STATES',
    'describe_state',
    'GateStatus',
    'TemporalPhase',
    'PhysicalActivity',
    'GateType',
    'GateUtilization',
    'GateSnapshot',
    'GateInterval',
    'LaneAssignment'
]
