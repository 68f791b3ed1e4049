"""
Application Configuration

Centralized configuration management with validation.
Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Callable, Optional, FrozenSet
import logging

from dotenv import load_dotenv

from app.errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == 'true'


def _env_number(name: str, default: str, cast: Callable):
    value = os.environ.get(name, default)
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(name, f"expected a number, got {value!r}")


@dataclass
class SchipholConfig:
    """Schiphol public-flights API configuration"""
    app_id: Optional[str]
    app_key: Optional[str]
    base_url: str = 'https://api.schiphol.nl/public-flights'
    resource_version: str = 'v4'
    timeout: int = 30
    max_retries: int = 3
    max_pages: int = 50

    @classmethod
    def from_env(cls) -> 'SchipholConfig':
        """Load Schiphol config from environment"""
        return cls(
            app_id=os.environ.get('SCHIPHOL_APP_ID'),
            app_key=os.environ.get('SCHIPHOL_APP_KEY'),
            base_url=os.environ.get('SCHIPHOL_API_BASE', 'https://api.schiphol.nl/public-flights'),
            timeout=_env_number('SCHIPHOL_TIMEOUT', '30', int),
            max_retries=_env_number('SCHIPHOL_MAX_RETRIES', '3', int),
            max_pages=_env_number('SCHIPHOL_MAX_PAGES', '50', int)
        )

    def is_ready(self) -> bool:
        """Check if API credentials are set"""
        return bool(self.app_id and self.app_key)


@dataclass
class CacheConfig:
    """In-memory cache and background refresh timing"""
    ttl_seconds: int = 600            # raw API responses
    metrics_ttl_seconds: int = 120    # computed gate metrics snapshot
    refresh_interval_minutes: int = 2

    @classmethod
    def from_env(cls) -> 'CacheConfig':
        """Load cache config from environment"""
        return cls(
            ttl_seconds=_env_number('CACHE_TTL_SECONDS', '600', int),
            metrics_ttl_seconds=_env_number('METRICS_TTL_SECONDS', '120', int),
            refresh_interval_minutes=_env_number('REFRESH_INTERVAL_MINUTES', '2', int)
        )


@dataclass
class EngineConfig:
    """
    Gate engine tuning

    current_capacity is a heuristic (simultaneous operations per gate), not an
    airport capacity figure. Override it per deployment if needed.
    """
    airline: str = 'KL'
    direction: str = 'D'
    stale_hours: int = 24
    current_capacity: int = 3
    operational_hours: float = 16.0
    turnaround_hours: float = 1.0
    maintenance_gates: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """Load engine config from environment"""
        maintenance = os.environ.get('MAINTENANCE_GATES', '')
        return cls(
            airline=os.environ.get('AIRLINE_CODE', 'KL').upper(),
            direction=os.environ.get('FLIGHT_DIRECTION', 'D').upper(),
            stale_hours=_env_number('STALE_HOURS', '24', int),
            current_capacity=_env_number('GATE_CURRENT_CAPACITY', '3', int),
            operational_hours=_env_number('GATE_OPERATIONAL_HOURS', '16', float),
            turnaround_hours=_env_number('GATE_TURNAROUND_HOURS', '1', float),
            maintenance_gates=frozenset(
                g.strip().upper() for g in maintenance.split(',') if g.strip()
            )
        )


@dataclass
class FeatureFlags:
    """Feature toggle flags"""
    background_refresh: bool = True
    request_logging: bool = False

    @classmethod
    def from_env(cls) -> 'FeatureFlags':
        """Load feature flags from environment"""
        return cls(
            background_refresh=_env_bool('FEATURE_BACKGROUND_REFRESH', 'true'),
            request_logging=_env_bool('FEATURE_REQUEST_LOGGING', 'false')
        )


@dataclass
class AppConfig:
    """Main application configuration"""
    debug: bool
    secret_key: str
    log_level: str
    schiphol: SchipholConfig
    cache: CacheConfig
    engine: EngineConfig
    features: FeatureFlags

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load all configuration from environment"""
        return cls(
            debug=_env_bool('DEBUG', 'false'),
            secret_key=os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production'),
            log_level=os.environ.get('LOG_LEVEL', 'INFO'),
            schiphol=SchipholConfig.from_env(),
            cache=CacheConfig.from_env(),
            engine=EngineConfig.from_env(),
            features=FeatureFlags.from_env()
        )

    def validate(self) -> list:
        """Validate configuration and return list of issues"""
        issues = []

        if self.secret_key == 'dev-secret-key-change-in-production':
            issues.append("SECRET_KEY should be changed in production")

        if not self.schiphol.is_ready():
            issues.append("SCHIPHOL_APP_ID or SCHIPHOL_APP_KEY not set - upstream fetches will fail")

        if self.engine.current_capacity <= 0:
            issues.append("GATE_CURRENT_CAPACITY must be positive")

        if self.engine.operational_hours <= 0:
            issues.append("GATE_OPERATIONAL_HOURS must be positive")

        if self.cache.refresh_interval_minutes <= 0:
            issues.append("REFRESH_INTERVAL_MINUTES must be positive")

        return issues


# Singleton config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create application config singleton"""
    global _config
    if _config is None:
        _config = AppConfig.from_env()

        # Log configuration status
        issues = _config.validate()
        for issue in issues:
            logger.warning(f"Config: {issue}")

        logger.info(
            f"Config loaded - Debug: {_config.debug}, Airline: {_config.engine.airline}, "
            f"Schiphol: {_config.schiphol.is_ready()}"
        )

    return _config


def reload_config() -> AppConfig:
    """Force reload configuration from environment"""
    global _config
    _config = None
    return get_config()
