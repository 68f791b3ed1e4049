"""End-to-end gate metrics pipeline"""
from app.config import EngineConfig
from services.gate_metrics_service import compute_gate_metrics
from tests.conftest import NOW, at, make_raw


def raw_batch():
    return [
        make_raw(flightNumber=1, flightName='KL1', mainFlight='KL1', gate='D7',
                 publicFlightState={'flightStates': ['BRD']},
                 scheduleDateTime='2025-06-10T12:20:00+02:00'),
        make_raw(flightNumber=2, flightName='KL2', mainFlight='KL2', gate='D7',
                 scheduleDateTime='2025-06-10T14:00:00+02:00'),
        make_raw(flightNumber=3, flightName='KL3', mainFlight='KL3', gate='B13', pier='B',
                 publicEstimatedOffBlockTime='2025-06-10T13:40:00+02:00'),
        # older duplicate of flight 3
        make_raw(flightNumber=3, flightName='KL3', mainFlight='KL3', gate='B10', pier='B',
                 lastUpdatedAt='2025-06-10T09:00:00+02:00'),
        # codeshare, cancelled, unassigned, stale, tomorrow, arrival
        make_raw(flightNumber=4, flightName='DL4', mainFlight='DL4', prefixIATA='DL'),
        make_raw(flightNumber=5, flightName='KL5', mainFlight='KL5', publicFlightState={'flightStates': ['CNX']}),
        make_raw(flightNumber=6, flightName='KL6', mainFlight='KL6', gate=''),
        make_raw(flightNumber=7, flightName='KL7', mainFlight='KL7', lastUpdatedAt='2025-06-09T11:00:00+02:00'),
        make_raw(flightNumber=8, flightName='KL8', mainFlight='KL8', scheduleDateTime='2025-06-11T09:00:00+02:00'),
        make_raw(flightNumber=9, flightName='KL9', mainFlight='KL9', flightDirection='A'),
        'garbage',
    ]


def test_pipeline_filters_and_groups():
    report = compute_gate_metrics(raw_batch(), NOW, EngineConfig())

    assert report.raw_count == 11
    assert sorted(f.flight_number for f in report.flights) == [1, 2, 3, 6]
    assert [g.gate_id for g in report.gates] == ['B13', 'D7']
    assert report.gate('d7').status.value == 'OCCUPIED'
    assert report.gate('B13').status.value == 'SCHEDULED'


def test_pipeline_summary():
    summary = compute_gate_metrics(raw_batch(), NOW, EngineConfig()).summary

    assert summary['total_gates'] == 2
    assert summary['total_piers'] == 2
    assert summary['active_piers'] == 1
    assert summary['status_breakdown']['OCCUPIED'] == 1
    assert summary['status_breakdown']['SCHEDULED'] == 1
    assert summary['status_breakdown']['MAINTENANCE'] == 0
    # D7 is at 33% (one boarding flight of three), B13 at 0%
    assert summary['average_utilization'] == 17
    assert summary['total_flights'] == 4


def test_pipeline_delays_and_timeline():
    report = compute_gate_metrics(raw_batch(), NOW, EngineConfig())

    assert report.delays.total_delayed == 1
    assert report.delays.max_delay.flight.flight_number == 3
    assert report.delays.max_delay.delay_minutes == 40

    timeline = report.timeline_dict()
    assert [g['gate_id'] for g in timeline['gates']] == ['B13', 'D7']
    assert timeline['window']['start'] == at(11).isoformat()
    assert timeline['window']['end'] == at(14, 30).isoformat()
    assert timeline['time_slots'][0] == timeline['window']['start']


def test_pipeline_maintenance_and_other_carrier():
    config = EngineConfig(airline='DL', maintenance_gates=frozenset({'D7'}))

    report = compute_gate_metrics(raw_batch(), NOW, config)

    assert [f.flight_number for f in report.flights] == [4]
    assert report.gates[0].status.value == 'MAINTENANCE'


def test_pipeline_empty_input():
    report = compute_gate_metrics([], NOW)

    assert report.gates == []
    assert report.summary['average_utilization'] == 0
    assert report.to_dict()['metadata']['flights_analyzed'] == 0
    assert report.hourly_trends()['summary']['total_flights'] == 0
