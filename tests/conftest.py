"""
Pytest fixtures shared by the gate dashboard tests.
Run from the project root: python -m pytest tests/
"""
from datetime import datetime, timedelta

import pytest

from app.config import AppConfig, CacheConfig, EngineConfig, FeatureFlags, SchipholConfig
from models.flight import FlightRecord
from services.base_service import IFlightDataSource, ServiceResult
from utils.date_utils import AMSTERDAM


NOW = AMSTERDAM.localize(datetime(2025, 6, 10, 12, 0))


def at(hour, minute=0, day=10):
    """Aware Amsterdam timestamp on the test day"""
    return AMSTERDAM.localize(datetime(2025, 6, day, hour, minute))


def make_raw(**overrides):
    """Raw Schiphol departure record with sensible defaults"""
    raw = {
        'flightName': 'KL1001',
        'flightNumber': 1001,
        'flightDirection': 'D',
        'mainFlight': 'KL1001',
        'prefixIATA': 'KL',
        'scheduleDateTime': '2025-06-10T13:00:00.000+02:00',
        'scheduleDate': '2025-06-10',
        'scheduleTime': '13:00:00',
        'publicFlightState': {'flightStates': ['SCH']},
        'aircraftType': {'iataMain': '73H', 'iataSub': '73H'},
        'route': {'destinations': ['LHR']},
        'gate': 'D7',
        'pier': 'D',
        'lastUpdatedAt': '2025-06-10T11:30:00.000+02:00',
    }
    raw.update(overrides)
    return raw


def make_flight(**overrides):
    return FlightRecord.from_api(make_raw(**overrides), fallback_time=NOW)


class FakeFlightSource(IFlightDataSource):
    """In-memory flight source that records its calls"""

    def __init__(self, flights=None, error=None):
        self.flights = flights or []
        self.error = error
        self.calls = []

    def get_flights(self, schedule_date=None, airline=None, direction=None):
        self.calls.append({'schedule_date': schedule_date, 'airline': airline, 'direction': direction})
        if self.error:
            return ServiceResult.fail(self.error)
        return ServiceResult.ok(list(self.flights))

    def is_available(self):
        return True

    def test_connection(self):
        return ServiceResult.ok({'status': 'ok'})


class FakeClock:
    """Controllable clock for datetime-based services"""

    def __init__(self, start=NOW):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def raw_flight():
    """Factory for raw API flight dictionaries"""
    return make_raw


@pytest.fixture
def flight():
    """Factory for normalized flights"""
    return make_flight


@pytest.fixture
def app_config():
    return AppConfig(
        debug=False,
        secret_key='test-secret',
        log_level='DEBUG',
        schiphol=SchipholConfig(app_id='test-id', app_key='test-key', max_retries=3, max_pages=5),
        cache=CacheConfig(ttl_seconds=600, metrics_ttl_seconds=120, refresh_interval_minutes=2),
        engine=EngineConfig(),
        features=FeatureFlags(background_refresh=False, request_logging=False)
    )


@pytest.fixture
def clock():
    return FakeClock()
