"""
Flask API for the Schiphol Gate Dashboard

JSON endpoints over the current gate metrics snapshot.
"""

from flask import Flask, request, jsonify
from typing import Optional
import logging

from app.config import AppConfig, get_config
from app.errors import NotFoundError, ServiceUnavailableError, ValidationError
from api.middleware.error_handler import setup_error_handlers, setup_request_logging, safe_endpoint
from models.gate import GateStatus
from services.cache_service import GateMetricsService, TTLCache
from services.gate_metrics_service import GateMetricsReport
from services.schiphol_service import SchipholService
from utils.date_utils import now_amsterdam
from utils.validators import (
    validate_schedule_date,
    validate_direction,
    validate_carrier_prefix,
    validate_limit
)

logger = logging.getLogger(__name__)


def build_metrics_service(config: AppConfig) -> GateMetricsService:
    """Wire the Schiphol source, raw cache and metrics service"""
    return GateMetricsService(
        source=SchipholService(config.schiphol),
        cache=TTLCache(config.cache.ttl_seconds),
        config=config
    )


def _validate_status(value: Optional[str]) -> Optional[GateStatus]:
    if not value:
        return None
    try:
        return GateStatus(value.strip().upper())
    except ValueError:
        raise ValidationError(
            f"Invalid gate status: {value}",
            field='status',
            details={'allowed': [s.value for s in GateStatus]}
        )


def create_app(
    metrics_service: Optional[GateMetricsService] = None,
    config: Optional[AppConfig] = None
) -> Flask:
    """
    Application factory

    Args:
        metrics_service: Pre-built service (tests inject one with a fake source)
        config: Application config (default: from environment)
    """
    config = config or get_config()
    service = metrics_service or build_metrics_service(config)

    app = Flask(__name__)
    app.secret_key = config.secret_key
    app.config['DEBUG'] = config.debug
    app.extensions['gate_metrics'] = service

    setup_error_handlers(app)
    if config.features.request_logging:
        setup_request_logging(app)

    def current_report() -> GateMetricsReport:
        """Shared snapshot, or an ad-hoc report when the query overrides date, airline or direction"""
        schedule_date = validate_schedule_date(request.args.get('date'))
        airline = validate_carrier_prefix(request.args.get('airline'))
        direction = validate_direction(request.args.get('direction'))

        if schedule_date or airline or direction:
            return service.compute_for(schedule_date, airline, direction)
        return service.get_snapshot()

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Simple health check endpoint"""
        return jsonify({
            'status': 'ok',
            'message': 'Gate Dashboard is running',
            'timestamp': now_amsterdam().isoformat(),
            'upstream_configured': config.schiphol.is_ready()
        })

    @app.route('/api/gate-occupancy', methods=['GET'])
    @safe_endpoint
    def gate_occupancy():
        report = current_report()
        pier = (request.args.get('pier') or '').strip().upper()
        status = _validate_status(request.args.get('status'))

        payload = report.to_dict()
        if pier or status:
            payload['gates'] = [
                g.to_dict() for g in report.gates
                if (not pier or g.pier == pier) and (not status or g.status == status)
            ]
        return jsonify(payload)

    @app.route('/api/gate-occupancy/<gate_id>', methods=['GET'])
    @safe_endpoint
    def gate_detail(gate_id: str):
        report = current_report()
        gate = report.gate(gate_id)
        if gate is None:
            raise NotFoundError('Gate', gate_id)
        timeline = next(t for t in report.timelines if t.gate_id == gate.gate_id)
        return jsonify({
            'gate': gate.to_dict(),
            'timeline': timeline.to_dict(report.window)
        })

    @app.route('/api/gate-timeline', methods=['GET'])
    @safe_endpoint
    def gate_timeline():
        report = current_report()
        payload = report.timeline_dict()
        pier = (request.args.get('pier') or '').strip().upper()
        if pier:
            payload['gates'] = [g for g in payload['gates'] if g['pier'] == pier]
        return jsonify(payload)

    @app.route('/api/delays', methods=['GET'])
    @safe_endpoint
    def delays():
        limit = validate_limit(request.args.get('limit'))
        report = current_report()
        return jsonify(report.delays.to_dict(limit))

    @app.route('/api/delay-trends/hourly', methods=['GET'])
    @safe_endpoint
    def hourly_delay_trends():
        report = current_report()
        return jsonify(report.hourly_trends())

    @app.route('/api/gate-statistics', methods=['GET'])
    @safe_endpoint
    def gate_stats():
        limit = validate_limit(request.args.get('limit'))
        report = current_report()
        return jsonify(report.gate_statistics(limit))

    @app.route('/api/gate-changes', methods=['GET'])
    @safe_endpoint
    def gate_changes():
        report = current_report()
        return jsonify(report.gate_changes())

    @app.route('/api/cache-status', methods=['GET'])
    def cache_status():
        status = service.get_status()
        scheduler = app.extensions.get('refresh_scheduler')
        status['scheduler'] = scheduler.get_status() if scheduler else None
        return jsonify(status)

    @app.route('/api/clear-cache', methods=['POST'])
    def clear_cache():
        result = service.clear_cache()
        return jsonify({'success': True, **result})

    @app.route('/api/refresh', methods=['POST'])
    @safe_endpoint
    def refresh():
        result = service.refresh(force=True)
        if not result.success:
            raise ServiceUnavailableError('Schiphol API', result.error)
        return jsonify({
            'success': True,
            'generated_at': result.data.generated_at.isoformat(),
            'summary': result.data.summary
        })

    return app
