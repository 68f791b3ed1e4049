"""
Services Package - Business Logic Layer
"""

from services.base_service import IFlightDataSource, ServiceResult
from services.schiphol_service import SchipholService
from services.gate_metrics_service import GateMetricsReport, compute_gate_metrics
from services.cache_service import TTLCache, GateMetricsService

__all__ = [
    'IFlightDataSource',
    'ServiceResult',
    'SchipholService',
    'GateMetricsReport',
    'compute_gate_metrics',
    'TTLCache',
    'GateMetricsService'
]
