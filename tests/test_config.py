"""Environment-driven configuration"""
import pytest

from app.config import AppConfig, EngineConfig, SchipholConfig
from app.errors import ConfigurationError


def test_engine_config_from_env(monkeypatch):
    monkeypatch.setenv('AIRLINE_CODE', 'hv')
    monkeypatch.setenv('GATE_CURRENT_CAPACITY', '4')
    monkeypatch.setenv('GATE_OPERATIONAL_HOURS', '18.5')
    monkeypatch.setenv('MAINTENANCE_GATES', ' d7, e18 ,,')

    config = EngineConfig.from_env()

    assert config.airline == 'HV'
    assert config.current_capacity == 4
    assert config.operational_hours == 18.5
    assert config.maintenance_gates == frozenset({'D7', 'E18'})


def test_invalid_number_raises_configuration_error(monkeypatch):
    monkeypatch.setenv('SCHIPHOL_TIMEOUT', 'thirty')

    with pytest.raises(ConfigurationError) as excinfo:
        SchipholConfig.from_env()

    assert excinfo.value.details['setting'] == 'SCHIPHOL_TIMEOUT'


def test_validate_reports_missing_credentials(monkeypatch):
    monkeypatch.delenv('SCHIPHOL_APP_ID', raising=False)
    monkeypatch.delenv('SCHIPHOL_APP_KEY', raising=False)
    monkeypatch.delenv('SECRET_KEY', raising=False)

    issues = AppConfig.from_env().validate()

    assert any('SCHIPHOL_APP_ID' in issue for issue in issues)
    assert any('SECRET_KEY' in issue for issue in issues)


def test_valid_config_has_no_issues(app_config):
    assert app_config.validate() == []
