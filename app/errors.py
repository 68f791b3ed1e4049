"""
Custom Application Exceptions

Defines structured exception hierarchy for consistent error handling.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base application exception"""

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        details: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses"""
        return {
            'error': True,
            'code': self.code,
            'message': self.message,
            'details': self.details
        }


class ValidationError(AppError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None, details: Any = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={'field': field, **({'info': details} if details else {})}
        )
        self.field = field


class NotFoundError(AppError):
    """Resource not found"""

    def __init__(self, resource: str, identifier: Any = None):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            details={'resource': resource, 'identifier': identifier}
        )


class ServiceUnavailableError(AppError):
    """External service unavailable"""

    def __init__(self, service: str, reason: Optional[str] = None):
        super().__init__(
            message=f"{service} is currently unavailable",
            code="SERVICE_UNAVAILABLE",
            details={'service': service, 'reason': reason}
        )


class SchipholApiError(ServiceUnavailableError):
    """Schiphol API returned an error response"""

    def __init__(self, reason: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(service="Schiphol API", reason=reason)
        if reason:
            self.message = f"Schiphol API error: {reason}"
            self.args = (self.message,)
        self.code = "SCHIPHOL_API_ERROR"
        self.status_code = status_code
        self.details['status_code'] = status_code


class SchipholAuthError(SchipholApiError):
    """Schiphol API rejected the credentials"""

    def __init__(self, status_code: int = 401):
        reason = 'Invalid API credentials.' if status_code == 401 else 'Access forbidden. Check API permissions.'
        super().__init__(reason=reason, status_code=status_code)
        self.code = "SCHIPHOL_AUTH_ERROR"


class RateLimitError(SchipholApiError):
    """Upstream rate limit exceeded"""

    def __init__(self, retry_after: Optional[str] = None):
        super().__init__(reason='Rate limit exceeded. Please try again later.', status_code=429)
        self.code = "RATE_LIMIT_EXCEEDED"
        self.details['retry_after'] = retry_after


class ConfigurationError(AppError):
    """Application configuration error"""

    def __init__(self, setting: str, reason: Optional[str] = None):
        super().__init__(
            message=f"Configuration error: {setting}",
            code="CONFIG_ERROR",
            details={'setting': setting, 'reason': reason}
        )
