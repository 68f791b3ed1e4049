"""
Schiphol Public Flights API Client

Fetches raw departure records page by page from the Schiphol
public-flights API (v4) using requests.

Configuration (Environment Variables):
    SCHIPHOL_APP_ID / SCHIPHOL_APP_KEY: API credentials
    SCHIPHOL_API_BASE: API base URL
    SCHIPHOL_TIMEOUT: Request timeout in seconds (default: 30)
    SCHIPHOL_MAX_RETRIES: Attempts for transient failures (default: 3)
    SCHIPHOL_MAX_PAGES: Page-through safety limit (default: 50)
"""

import logging
import time
from datetime import date
from functools import wraps
from typing import Any, Dict, List, Optional

import requests

from app.config import SchipholConfig
from app.errors import RateLimitError, SchipholApiError, SchipholAuthError
from services.base_service import IFlightDataSource, ServiceResult
from utils.date_utils import now_amsterdam

logger = logging.getLogger(__name__)


class TransientApiError(SchipholApiError):
    """Upstream 5xx response, worth retrying"""


RETRYABLE_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    TransientApiError,
)


def retry_on_failure(max_retries: int = 3, base_delay: float = 1.0):
    """
    Decorator for retry logic with exponential backoff

    Only transient failures (connection errors, timeouts, 5xx) are retried.
    An instance attribute max_retries overrides the decorator default.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            attempts = max(1, getattr(self, 'max_retries', max_retries))
            last_exception = None
            for attempt in range(attempts):
                try:
                    return func(self, *args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    last_exception = e
                    if attempt + 1 >= attempts:
                        break
                    delay = base_delay * (2 ** attempt)
                    logger.warning(f"Attempt {attempt + 1}/{attempts} failed: {e}. Retrying in {delay}s...")
                    time.sleep(delay)
            logger.error(f"All {attempts} attempts failed for {func.__name__}")
            raise last_exception
        return wrapper
    return decorator


def raise_for_status(response: requests.Response):
    """Map a non-2xx upstream response to an application error"""
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 429:
        raise RateLimitError(retry_after=response.headers.get('Retry-After'))
    if status in (401, 403):
        raise SchipholAuthError(status_code=status)
    if status >= 500:
        raise TransientApiError(reason=f"{status} {response.reason}", status_code=status)
    raise SchipholApiError(reason=f"{status} {response.reason}", status_code=status)


class SchipholService(IFlightDataSource):
    """
    Schiphol public-flights data source

    Usage:
        service = SchipholService(SchipholConfig.from_env())
        result = service.get_flights(airline='KL', direction='D')
        if result.success:
            raw_flights = result.data
    """

    def __init__(self, config: Optional[SchipholConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or SchipholConfig.from_env()
        self.max_retries = self.config.max_retries
        self.session = session or requests.Session()

    @property
    def flights_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/flights"

    def _headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/json',
            'app_id': self.config.app_id or '',
            'app_key': self.config.app_key or '',
            'ResourceVersion': self.config.resource_version
        }

    def is_available(self) -> bool:
        return self.config.is_ready()

    @retry_on_failure(max_retries=3)
    def fetch_page(self, params: Dict[str, Any], page: int) -> List[Dict[str, Any]]:
        """Fetch one page of flights; raises SchipholApiError subclasses"""
        response = self.session.get(
            self.flights_url,
            headers=self._headers(),
            params={**params, 'page': page},
            timeout=self.config.timeout
        )
        raise_for_status(response)

        # No Content past the last page
        if response.status_code == 204 or not response.content:
            return []

        try:
            payload = response.json()
        except ValueError as e:
            raise SchipholApiError(reason=f"Invalid JSON on page {page}: {e}", status_code=response.status_code)

        if not isinstance(payload, dict):
            raise SchipholApiError(
                reason=f"Unexpected payload on page {page}: {type(payload).__name__}",
                status_code=response.status_code
            )
        return payload.get('flights') or []

    def get_flights(
        self,
        schedule_date: Optional[date] = None,
        airline: Optional[str] = None,
        direction: Optional[str] = None
    ) -> ServiceResult[List[Dict[str, Any]]]:
        """
        Fetch all pages until an empty page or max_pages

        A failure on the first page fails the call. A failure on a later
        page returns the flights collected so far, flagged as partial.
        """
        if not self.is_available():
            return ServiceResult.fail(
                "Schiphol API not configured",
                {'reason': 'SCHIPHOL_APP_ID or SCHIPHOL_APP_KEY not set'}
            )

        schedule_date = schedule_date or now_amsterdam().date()
        params = {'scheduleDate': schedule_date.isoformat()}
        if direction:
            params['flightDirection'] = direction
        if airline:
            params['airline'] = airline

        flights: List[Dict[str, Any]] = []
        page = 0
        partial_error = None

        while page < self.config.max_pages:
            try:
                batch = self.fetch_page(params, page)
            except (SchipholApiError, requests.exceptions.RequestException) as e:
                if page == 0:
                    logger.error(f"Schiphol fetch failed: {e}")
                    return ServiceResult.fail(str(e), {
                        'error_code': getattr(e, 'code', 'UPSTREAM_ERROR'),
                        'status_code': getattr(e, 'status_code', None)
                    })
                logger.warning(f"Schiphol fetch stopped at page {page}: {e}")
                partial_error = str(e)
                break

            logger.debug(f"Page {page}: {len(batch)} flights")
            if not batch:
                break
            flights.extend(batch)
            page += 1

        logger.info(f"Fetched {len(flights)} flights from {page} pages")

        return ServiceResult.ok(flights, {
            'pages': page,
            'total_count': len(flights),
            'schedule_date': schedule_date.isoformat(),
            'partial': partial_error is not None,
            'error': partial_error
        })

    def test_connection(self) -> ServiceResult[Dict[str, Any]]:
        """Fetch the first page of today's departures"""
        if not self.is_available():
            return ServiceResult.fail("Schiphol API not configured")

        params = {
            'scheduleDate': now_amsterdam().date().isoformat(),
            'flightDirection': 'D'
        }
        try:
            batch = self.fetch_page(params, 0)
        except (SchipholApiError, requests.exceptions.RequestException) as e:
            logger.error(f"Schiphol connection test failed: {e}")
            return ServiceResult.fail(str(e))

        return ServiceResult.ok({
            'status': 'ok',
            'url': self.flights_url,
            'sample_size': len(batch)
        })
