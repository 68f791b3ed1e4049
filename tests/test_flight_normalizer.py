"""Normalization of raw Schiphol flight records"""
from datetime import datetime

from models.flight import FlightDirection, FlightRecord, FlightState, describe_state
from tests.conftest import NOW, at, make_raw


def test_full_record_is_normalized():
    flight = FlightRecord.from_api(make_raw(
        publicEstimatedOffBlockTime='2025-06-10T13:20:00.000+02:00',
        gate='d7',
        pier='d'
    ))

    assert flight.flight_name == 'KL1001'
    assert flight.flight_number == 1001
    assert flight.direction == FlightDirection.DEPARTURE
    assert flight.scheduled_time == at(13)
    assert flight.estimated_time == at(13, 20)
    assert flight.actual_time is None
    assert flight.state_codes == ('SCH',)
    assert flight.aircraft_type == '73H'
    assert flight.destination == 'LHR'
    assert flight.gate == 'D7'
    assert flight.pier == 'D'
    assert flight.operating_carrier_prefix == 'KL'


def test_empty_record_gets_typed_defaults():
    flight = FlightRecord.from_api({}, fallback_time=NOW)

    assert flight.flight_name == ''
    assert flight.flight_number == 0
    assert flight.scheduled_time == NOW
    assert flight.state_codes == (FlightState.UNKNOWN,)
    assert flight.primary_state == FlightState.UNKNOWN
    assert flight.gate == ''
    assert not flight.has_gate
    assert flight.last_updated_at is None


def test_non_mapping_input_does_not_raise():
    flight = FlightRecord.from_api(None, fallback_time=NOW)
    assert flight.scheduled_time == NOW


def test_naive_fallback_time_is_localized():
    flight = FlightRecord.from_api({}, fallback_time=datetime(2025, 6, 10, 12, 0))

    assert flight.scheduled_time.tzinfo is not None
    assert flight.scheduled_time == NOW


def test_schedule_falls_back_to_date_and_time_fields():
    raw = make_raw(scheduleTime='14:05:00')
    del raw['scheduleDateTime']

    flight = FlightRecord.from_api(raw)

    assert flight.scheduled_time == at(14, 5)


def test_invalid_timestamps_become_none():
    flight = FlightRecord.from_api(make_raw(
        actualOffBlockTime='not-a-time',
        lastUpdatedAt=12345
    ))

    assert flight.actual_time is None
    assert flight.last_updated_at is None


def test_estimated_falls_back_to_non_public_field():
    flight = FlightRecord.from_api(make_raw(estimatedOffBlockTime='2025-06-10T13:10:00+02:00'))
    assert flight.estimated_time == at(13, 10)


def test_utc_timestamp_is_aware():
    flight = FlightRecord.from_api(make_raw(actualOffBlockTime='2025-06-10T11:05:00Z'))
    assert flight.actual_time == at(13, 5)


def test_aircraft_type_as_plain_string():
    flight = FlightRecord.from_api(make_raw(aircraftType='789'))
    assert flight.aircraft_type == '789'


def test_codeshare_uses_main_flight_prefix():
    flight = FlightRecord.from_api(make_raw(flightName='DL9361', prefixIATA='DL', mainFlight='KL1001'))
    assert flight.operating_carrier_prefix == 'KL'


def test_prefix_falls_back_to_flight_name():
    raw = make_raw(flightName='HV5123')
    del raw['mainFlight']
    del raw['prefixIATA']

    flight = FlightRecord.from_api(raw)

    assert flight.operating_carrier_prefix == 'HV'


def test_state_codes_keep_order_and_are_upper_cased():
    flight = FlightRecord.from_api(make_raw(publicFlightState={'flightStates': ['brd', 'DEL']}))

    assert flight.state_codes == ('BRD', 'DEL')
    assert flight.primary_state == 'BRD'
    assert flight.has_state('DEL')
    assert not flight.is_cancelled


def test_tbd_gate_is_unassigned():
    assert not FlightRecord.from_api(make_raw(gate='TBD')).has_gate


def test_arrival_direction():
    assert FlightRecord.from_api(make_raw(flightDirection='A')).direction == FlightDirection.ARRIVAL


def test_to_dict_is_json_ready():
    data = FlightRecord.from_api(make_raw(publicFlightState={'flightStates': ['CNX']})).to_dict()

    assert data['scheduled_time'] == at(13).isoformat()
    assert data['estimated_time'] is None
    assert data['primary_state_readable'] == 'Cancelled'
    assert data['state_codes'] == ['CNX']


def test_describe_unknown_state():
    assert describe_state('XYZ') == 'Unknown'
    assert describe_state('BRD') == 'Boarding'
