"""
Centralized Error Handling Middleware for Flask

Provides consistent error responses and logging across all endpoints.
"""

from flask import Flask, jsonify, request
from functools import wraps
import logging
import traceback
from typing import Tuple, Dict, Callable

from app.errors import (
    AppError,
    ValidationError,
    NotFoundError,
    ServiceUnavailableError,
    RateLimitError
)

logger = logging.getLogger(__name__)


def setup_error_handlers(app: Flask):
    """
    Register error handlers with Flask app

    Usage:
        from api.middleware.error_handler import setup_error_handlers

        app = Flask(__name__)
        setup_error_handlers(app)
    """

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError) -> Tuple[Dict, int]:
        """Handle custom application errors"""
        logger.warning(f"App Error [{error.code}]: {error.message}")

        status_code = _get_status_code(error)
        return jsonify(error.to_dict()), status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError) -> Tuple[Dict, int]:
        """Handle validation errors"""
        logger.warning(f"Validation Error: {error.message} (field: {error.field})")
        return jsonify(error.to_dict()), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found_error(error: NotFoundError) -> Tuple[Dict, int]:
        """Handle not found errors"""
        logger.info(f"Not Found: {error.message}")
        return jsonify(error.to_dict()), 404

    @app.errorhandler(RateLimitError)
    def handle_rate_limit(error: RateLimitError):
        """Handle upstream rate limiting"""
        logger.warning(f"Rate limited: {error.message}")
        response = jsonify(error.to_dict())
        response.status_code = 429
        retry_after = error.details.get('retry_after')
        if retry_after:
            response.headers['Retry-After'] = retry_after
        return response

    @app.errorhandler(ServiceUnavailableError)
    def handle_service_unavailable(error: ServiceUnavailableError) -> Tuple[Dict, int]:
        """Handle service unavailable and upstream errors"""
        logger.error(f"Service Unavailable [{error.code}]: {error.message}")
        return jsonify(error.to_dict()), _get_status_code(error)

    @app.errorhandler(404)
    def handle_flask_not_found(error) -> Tuple[Dict, int]:
        """Handle Flask 404 errors"""
        return jsonify({
            'error': True,
            'code': 'ENDPOINT_NOT_FOUND',
            'message': f"Endpoint not found: {request.path}",
            'details': {'method': request.method, 'path': request.path}
        }), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error) -> Tuple[Dict, int]:
        """Handle method not allowed errors"""
        return jsonify({
            'error': True,
            'code': 'METHOD_NOT_ALLOWED',
            'message': f"Method {request.method} not allowed for {request.path}",
            'details': None
        }), 405

    @app.errorhandler(500)
    def handle_server_error(error) -> Tuple[Dict, int]:
        """Handle internal server errors"""
        logger.error(f"Server Error: {error}")
        logger.error(traceback.format_exc())
        return jsonify({
            'error': True,
            'code': 'INTERNAL_ERROR',
            'message': 'An internal error occurred',
            'details': None
        }), 500


def _get_status_code(error: AppError) -> int:
    """Map error codes to HTTP status codes"""
    code_map = {
        'VALIDATION_ERROR': 400,
        'NOT_FOUND': 404,
        'RATE_LIMIT_EXCEEDED': 429,
        'SCHIPHOL_API_ERROR': 502,
        'SCHIPHOL_AUTH_ERROR': 502,
        'SERVICE_UNAVAILABLE': 503,
        'CONFIG_ERROR': 500,
        'ENDPOINT_ERROR': 500,
    }
    return code_map.get(error.code, 500)


def safe_endpoint(func: Callable) -> Callable:
    """
    Decorator for safe endpoint execution with error handling

    Catches exceptions and converts them to proper API responses.

    Usage:
        @app.route('/api/data')
        @safe_endpoint
        def get_data():
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AppError:
            # Let the error handler deal with it
            raise
        except Exception as e:
            logger.error(f"Endpoint {func.__name__} failed: {e}")
            logger.error(traceback.format_exc())
            raise AppError(
                message=f"Operation failed: {str(e)}",
                code="ENDPOINT_ERROR"
            )
    return wrapper


def log_request():
    """Log incoming request details"""
    logger.debug(f"Request: {request.method} {request.path}")
    if request.args:
        logger.debug(f"Query: {dict(request.args)}")


def log_response(response):
    """Log response details"""
    logger.debug(f"Response: {response.status_code}")
    return response


def setup_request_logging(app: Flask):
    """
    Setup request/response logging

    Usage:
        setup_request_logging(app)
    """
    app.before_request(log_request)
    app.after_request(log_response)
