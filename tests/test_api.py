"""Flask API endpoints"""
import pytest

from api.index import create_app
from services.cache_service import GateMetricsService, TTLCache
from tests.conftest import FakeFlightSource, make_raw


@pytest.fixture
def source():
    return FakeFlightSource([
        make_raw(flightNumber=1, flightName='KL1', mainFlight='KL1', gate='D7',
                 publicFlightState={'flightStates': ['BRD']},
                 scheduleDateTime='2025-06-10T12:20:00+02:00'),
        make_raw(flightNumber=2, flightName='KL2', mainFlight='KL2', gate='B13', pier='B',
                 publicEstimatedOffBlockTime='2025-06-10T13:40:00+02:00'),
        make_raw(flightNumber=3, flightName='KL3', mainFlight='KL3', gate='B15', pier='B',
                 publicEstimatedOffBlockTime='2025-06-10T13:20:00+02:00'),
    ])


@pytest.fixture
def service(source, clock, app_config):
    return GateMetricsService(source, cache=TTLCache(600), clock=clock, config=app_config)


@pytest.fixture
def client(service, app_config):
    app = create_app(metrics_service=service, config=app_config)
    app.config['TESTING'] = True
    return app.test_client()


def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_gate_occupancy(client):
    data = client.get('/api/gate-occupancy').get_json()

    assert [g['gate_id'] for g in data['gates']] == ['B13', 'B15', 'D7']
    assert data['summary']['total_gates'] == 3
    assert data['delayed_flights']['total_delayed_flights'] == 2
    assert data['metadata']['flights_analyzed'] == 3


def test_gate_occupancy_filters(client):
    data = client.get('/api/gate-occupancy?pier=b').get_json()
    assert [g['gate_id'] for g in data['gates']] == ['B13', 'B15']

    data = client.get('/api/gate-occupancy?status=occupied').get_json()
    assert [g['gate_id'] for g in data['gates']] == ['D7']


def test_invalid_status_is_rejected(client):
    response = client.get('/api/gate-occupancy?status=open')

    assert response.status_code == 400
    body = response.get_json()
    assert body['code'] == 'VALIDATION_ERROR'
    assert body['details']['field'] == 'status'


def test_gate_detail(client):
    data = client.get('/api/gate-occupancy/d7').get_json()

    assert data['gate']['gate_id'] == 'D7'
    assert data['gate']['occupied_by'] == 'KL1'
    assert data['timeline']['max_concurrency'] == 1


def test_unknown_gate_is_404(client):
    response = client.get('/api/gate-occupancy/Z99')
    assert response.status_code == 404
    assert response.get_json()['code'] == 'NOT_FOUND'


def test_gate_timeline(client):
    data = client.get('/api/gate-timeline').get_json()

    assert set(data) == {'window', 'time_slots', 'gates', 'generated_at'}
    assert len(data['gates']) == 3
    assert client.get('/api/gate-timeline?pier=D').get_json()['gates'][0]['gate_id'] == 'D7'


def test_delays_with_limit(client):
    data = client.get('/api/delays?limit=1').get_json()

    assert data['total_delayed_flights'] == 2
    assert [f['flight_name'] for f in data['flights']] == ['KL2']
    assert data['max_delay']['formatted'] == '0h 40m'


def test_invalid_limit(client):
    assert client.get('/api/delays?limit=abc').status_code == 400
    assert client.get('/api/delays?limit=0').status_code == 400


def test_hourly_trends(client):
    data = client.get('/api/delay-trends/hourly').get_json()
    assert len(data['hours']) == 24
    assert data['summary']['total_flights'] == 3


def test_gate_statistics(client):
    data = client.get('/api/gate-statistics').get_json()

    assert [g['gate_id'] for g in data['gates']] == ['B13', 'B15', 'D7']
    assert [p['pier'] for p in data['piers']] == ['B', 'D']
    assert data['summary']['busiest_pier'] == 'B'
    assert data['summary']['total_flights'] == 3
    assert len(client.get('/api/gate-statistics?limit=1').get_json()['gates']) == 1
    assert client.get('/api/gate-statistics?limit=x').status_code == 400


def test_gate_changes(client, source):
    source.flights.append(make_raw(
        flightNumber=4, flightName='KL4', mainFlight='KL4', gate='C5', pier='C',
        publicFlightState={'flightStates': ['GCH']},
        scheduleDateTime='2025-06-10T12:40:00+02:00'
    ))

    data = client.get('/api/gate-changes').get_json()

    assert [c['flight_name'] for c in data['gate_changes']] == ['KL4']
    assert data['gate_changes'][0]['current_gate'] == 'C5'
    assert data['gate_changes'][0]['minutes_until_departure'] == 40
    assert data['metadata']['urgent'] == 1


def test_query_override_uses_adhoc_report(client, source, service):
    response = client.get('/api/gate-occupancy?date=2025-06-10&airline=kl&direction=D')

    assert response.status_code == 200
    assert service.snapshot is None
    assert source.calls[-1]['airline'] == 'KL'


def test_invalid_query_parameters(client):
    assert client.get('/api/gate-occupancy?date=10.06.2025').status_code == 400
    assert client.get('/api/gate-occupancy?airline=K').status_code == 400
    assert client.get('/api/gate-occupancy?direction=X').status_code == 400


def test_cache_status_and_clear(client):
    client.get('/api/gate-occupancy')

    status = client.get('/api/cache-status').get_json()
    assert status['has_snapshot'] is True
    assert status['scheduler'] is None

    cleared = client.post('/api/clear-cache').get_json()
    assert cleared['success'] is True
    assert cleared['snapshot_cleared'] is True


def test_refresh(client, source):
    response = client.post('/api/refresh')

    assert response.status_code == 200
    assert response.get_json()['summary']['total_gates'] == 3
    assert len(source.calls) == 1


def test_upstream_failure_is_503(client, source):
    source.error = 'Schiphol API error: 500 Internal Server Error'

    response = client.get('/api/gate-occupancy')

    assert response.status_code == 503
    assert response.get_json()['code'] == 'SERVICE_UNAVAILABLE'
    assert client.post('/api/refresh').status_code == 503


def test_unknown_endpoint(client):
    response = client.get('/api/nope')
    assert response.status_code == 404
    assert response.get_json()['code'] == 'ENDPOINT_NOT_FOUND'


def test_wrong_method(client):
    assert client.get('/api/refresh').status_code == 405
