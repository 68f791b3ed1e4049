"""
Caching Layer

TTLCache holds raw upstream responses keyed by query parameters.
GateMetricsService keeps the latest computed GateMetricsReport and
refreshes it when it ages out; readers never see a half-built report.
"""

import logging
import threading
import time
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from app.config import AppConfig, get_config
from app.errors import ServiceUnavailableError
from services.base_service import IFlightDataSource, ServiceResult
from services.gate_metrics_service import GateMetricsReport, compute_gate_metrics
from utils.date_utils import local_date, now_amsterdam

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Thread-safe in-memory cache with per-entry expiry

    Args:
        ttl_seconds: Entry lifetime
        clock: Monotonic seconds source (injectable for tests)
    """

    def __init__(self, ttl_seconds: float = 600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(**params) -> Tuple:
        """Order-independent key from query parameters"""
        return tuple(sorted((k, str(v)) for k, v in params.items() if v is not None))

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def set(self, key: Hashable, value: Any):
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._evict_expired()

    def _evict_expired(self):
        now = self._clock()
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]

    def clear(self) -> int:
        """Drop all entries, return how many were removed"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            now = self._clock()
            return {
                'entries': len(self._entries),
                'hits': self.hits,
                'misses': self.misses,
                'ttl_seconds': self.ttl_seconds,
                'oldest_age_seconds': (
                    round(max(now - stored_at for stored_at, _ in self._entries.values()), 1)
                    if self._entries else None
                )
            }


class GateMetricsService:
    """
    Owns the current gate metrics snapshot

    refresh() runs fetch and compute, then swaps the snapshot in one
    assignment under the lock. Refreshes are serialized. get_snapshot()
    refreshes a snapshot older than the metrics TTL and falls back to the
    previous snapshot if the refresh fails.
    """

    def __init__(
        self,
        source: IFlightDataSource,
        cache: Optional[TTLCache] = None,
        clock: Callable[[], datetime] = now_amsterdam,
        config: Optional[AppConfig] = None
    ):
        self.source = source
        self.config = config or get_config()
        self.cache = cache if cache is not None else TTLCache(self.config.cache.ttl_seconds)
        self.clock = clock

        self._snapshot: Optional[GateMetricsReport] = None
        self._snapshot_lock = threading.Lock()
        self._refresh_lock = threading.RLock()
        self.last_refresh: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.refresh_count = 0

    @property
    def snapshot(self) -> Optional[GateMetricsReport]:
        with self._snapshot_lock:
            return self._snapshot

    def snapshot_age_seconds(self) -> Optional[float]:
        snapshot = self.snapshot
        if snapshot is None:
            return None
        return (self.clock() - snapshot.generated_at).total_seconds()

    def is_stale(self) -> bool:
        age = self.snapshot_age_seconds()
        return age is None or age > self.config.cache.metrics_ttl_seconds

    def _fetch_raw(
        self,
        schedule_date: date,
        airline: str,
        direction: str,
        use_cache: bool = True
    ) -> ServiceResult:
        key = TTLCache.make_key(
            schedule_date=schedule_date.isoformat(),
            airline=airline,
            direction=direction
        )
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Using cached Schiphol flight data for {key}")
                return ServiceResult.ok(cached, {'cached': True})

        result = self.source.get_flights(
            schedule_date=schedule_date,
            airline=airline,
            direction=direction
        )
        if result.success:
            self.cache.set(key, result.data)
        return result

    def compute_for(
        self,
        schedule_date: Optional[date] = None,
        airline: Optional[str] = None,
        direction: Optional[str] = None
    ) -> GateMetricsReport:
        """
        Report for an ad-hoc query, leaving the shared snapshot untouched

        Raises:
            ServiceUnavailableError: Upstream fetch failed
        """
        now = self.clock()
        engine = replace(
            self.config.engine,
            airline=airline or self.config.engine.airline,
            direction=direction or self.config.engine.direction
        )
        schedule_date = schedule_date or local_date(now)

        result = self._fetch_raw(schedule_date, engine.airline, engine.direction)
        if not result.success:
            raise ServiceUnavailableError('Schiphol API', result.error)

        return compute_gate_metrics(result.data or [], now, engine, schedule_date)

    def refresh(self, force: bool = False) -> ServiceResult[GateMetricsReport]:
        """
        Fetch and recompute the snapshot

        Args:
            force: Bypass the raw response cache
        """
        with self._refresh_lock:
            now = self.clock()
            engine = self.config.engine
            result = self._fetch_raw(local_date(now), engine.airline, engine.direction, use_cache=not force)
            if not result.success:
                self.last_error = result.error
                logger.error(f"Gate metrics refresh failed: {result.error}")
                return ServiceResult.fail(result.error, result.metadata)

            report = compute_gate_metrics(result.data or [], now, self.config.engine)
            with self._snapshot_lock:
                self._snapshot = report
            self.last_refresh = now
            self.last_error = None
            self.refresh_count += 1
            return ServiceResult.ok(report, result.metadata)

    def refresh_if_stale(self) -> Optional[ServiceResult[GateMetricsReport]]:
        """Refresh unless another caller refreshed while this one waited for the lock"""
        with self._refresh_lock:
            if not self.is_stale():
                return None
            return self.refresh()

    def get_snapshot(self) -> GateMetricsReport:
        """
        Current snapshot, refreshed when stale

        Raises:
            ServiceUnavailableError: No snapshot could ever be computed
        """
        if self.is_stale():
            self.refresh_if_stale()

        snapshot = self.snapshot
        if snapshot is None:
            raise ServiceUnavailableError('Gate metrics', self.last_error)
        return snapshot

    def clear_cache(self) -> Dict[str, Any]:
        removed = self.cache.clear()
        with self._snapshot_lock:
            had_snapshot = self._snapshot is not None
            self._snapshot = None
        logger.info(f"Cache cleared: {removed} raw entries, snapshot dropped: {had_snapshot}")
        return {'raw_entries_removed': removed, 'snapshot_cleared': had_snapshot}

    def get_status(self) -> Dict[str, Any]:
        age = self.snapshot_age_seconds()
        return {
            'has_snapshot': self.snapshot is not None,
            'snapshot_age_seconds': round(age, 1) if age is not None else None,
            'metrics_ttl_seconds': self.config.cache.metrics_ttl_seconds,
            'is_stale': self.is_stale(),
            'last_refresh': self.last_refresh.isoformat() if self.last_refresh else None,
            'last_error': self.last_error,
            'refresh_count': self.refresh_count,
            'raw_cache': self.cache.stats()
        }
