"""TTL cache and the gate metrics snapshot service"""
import threading
from datetime import date

import pytest

from app.errors import ServiceUnavailableError
from services.cache_service import GateMetricsService, TTLCache
from tests.conftest import FakeFlightSource, make_raw


class Ticker:
    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


def test_ttl_cache_expires_entries():
    ticker = Ticker()
    cache = TTLCache(ttl_seconds=600, clock=ticker)
    key = TTLCache.make_key(airline='KL', direction='D')

    cache.set(key, ['flight'])
    ticker.value = 599
    assert cache.get(key) == ['flight']

    ticker.value = 600
    assert cache.get(key) is None

    stats = cache.stats()
    assert stats['hits'] == 1
    assert stats['misses'] == 1
    assert stats['entries'] == 0


def test_make_key_ignores_order_and_none():
    assert TTLCache.make_key(a=1, b='x') == TTLCache.make_key(b='x', a=1, c=None)


def test_ttl_cache_clear():
    cache = TTLCache()
    cache.set('a', 1)
    cache.set('b', 2)
    assert cache.clear() == 2
    assert cache.get('a') is None


@pytest.fixture
def source():
    return FakeFlightSource([
        make_raw(),
        make_raw(flightNumber=1002, flightName='KL1002', mainFlight='KL1002', gate='D9',
                 publicFlightState={'flightStates': ['BRD']}),
    ])


@pytest.fixture
def service(source, clock, app_config):
    return GateMetricsService(source, cache=TTLCache(600), clock=clock, config=app_config)


def test_get_snapshot_refreshes_when_missing(service, source):
    report = service.get_snapshot()

    assert [g.gate_id for g in report.gates] == ['D7', 'D9']
    assert len(source.calls) == 1
    assert source.calls[0] == {'schedule_date': date(2025, 6, 10), 'airline': 'KL', 'direction': 'D'}


def test_snapshot_is_reused_until_metrics_ttl(service, clock):
    first = service.get_snapshot()

    clock.advance(seconds=120)
    assert service.get_snapshot() is first

    clock.advance(seconds=1)
    assert service.get_snapshot() is not first


def test_stale_refresh_uses_raw_cache(service, source, clock):
    service.get_snapshot()
    clock.advance(minutes=5)
    service.get_snapshot()

    # Metrics were recomputed but the raw response came from the cache
    assert len(source.calls) == 1
    assert service.refresh_count == 2


def test_forced_refresh_bypasses_raw_cache(service, source):
    service.refresh()
    service.refresh(force=True)
    assert len(source.calls) == 2


def test_failed_refresh_serves_previous_snapshot(service, source, clock):
    first = service.get_snapshot()

    source.error = 'Rate limit exceeded. Please try again later.'
    service.cache.clear()
    clock.advance(minutes=5)

    assert service.get_snapshot() is first
    assert service.last_error == 'Rate limit exceeded. Please try again later.'


def test_no_snapshot_at_all_raises(clock, app_config):
    service = GateMetricsService(FakeFlightSource(error='boom'), clock=clock, config=app_config)
    with pytest.raises(ServiceUnavailableError):
        service.get_snapshot()


def test_compute_for_does_not_touch_snapshot(service, source):
    report = service.compute_for(airline='KL', direction='D')

    assert service.snapshot is None
    assert len(report.gates) == 2


def test_compute_for_failure_raises(clock, app_config):
    service = GateMetricsService(FakeFlightSource(error='down'), clock=clock, config=app_config)
    with pytest.raises(ServiceUnavailableError):
        service.compute_for(schedule_date=date(2025, 6, 9))


def test_clear_cache_and_status(service):
    service.get_snapshot()

    result = service.clear_cache()
    status = service.get_status()

    assert result == {'raw_entries_removed': 1, 'snapshot_cleared': True}
    assert status['has_snapshot'] is False
    assert status['is_stale'] is True
    assert status['refresh_count'] == 1
    assert status['raw_cache']['entries'] == 0


class BlockingSource(FakeFlightSource):
    """Holds the first fetch open until released"""

    def __init__(self, flights):
        super().__init__(flights)
        self.started = threading.Event()
        self.release = threading.Event()

    def get_flights(self, schedule_date=None, airline=None, direction=None):
        self.started.set()
        self.release.wait(timeout=5)
        return super().get_flights(schedule_date, airline, direction)


def test_concurrent_stale_readers_refresh_once(clock, app_config):
    source = BlockingSource([make_raw()])
    service = GateMetricsService(source, cache=TTLCache(600), clock=clock, config=app_config)

    first = threading.Thread(target=service.get_snapshot)
    first.start()
    assert source.started.wait(timeout=5)

    second = threading.Thread(target=service.get_snapshot)
    second.start()
    source.release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert len(source.calls) == 1
    assert service.refresh_count == 1


def test_refresh_if_stale_skips_fresh_snapshot(service, source):
    assert service.refresh_if_stale().success
    assert service.refresh_if_stale() is None
    assert len(source.calls) == 1
