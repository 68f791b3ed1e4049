"""
Background Refresh Scheduler

Recomputes gate metrics on a fixed interval so API readers get a warm
snapshot.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from services.cache_service import GateMetricsService

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Periodic gate metrics refresh

    - Runs every interval_minutes (default: 2)
    - First run fires immediately on start
    - on_success is called after a refresh that produced a snapshot
    """

    def __init__(self, metrics_service: GateMetricsService, interval_minutes: int = 2):
        self.metrics_service = metrics_service
        self.interval_minutes = interval_minutes
        self.scheduler: Optional[BackgroundScheduler] = None
        self.is_running = False
        self.last_run: Optional[datetime] = None
        self.last_status: Optional[dict] = None
        self.on_success: Optional[Callable[[], None]] = None

    def run_refresh_job(self) -> dict:
        """
        Run one refresh

        Returns:
            dict: Job result status
        """
        start_time = datetime.now()
        result = {
            'success': False,
            'start_time': start_time.isoformat(),
            'end_time': None,
            'duration_seconds': 0,
            'gates': 0,
            'flights': 0,
            'errors': []
        }

        try:
            refresh = self.metrics_service.refresh(force=True)
            if refresh.success:
                result['gates'] = len(refresh.data.gates)
                result['flights'] = len(refresh.data.flights)
            else:
                result['errors'].append(f"Refresh error: {refresh.error}")

            result['success'] = len(result['errors']) == 0

        except Exception as e:
            logger.exception(f"Refresh job failed: {e}")
            result['errors'].append(str(e))
        finally:
            end_time = datetime.now()
            result['end_time'] = end_time.isoformat()
            result['duration_seconds'] = (end_time - start_time).total_seconds()

            self.last_run = start_time
            self.last_status = result

            logger.info(
                f"Refresh job completed in {result['duration_seconds']:.2f}s - "
                f"Gates: {result['gates']}, Flights: {result['flights']}"
            )

        if result['success'] and self.on_success:
            try:
                self.on_success()
            except Exception as cb_error:
                logger.error(f"Error in on_success callback: {cb_error}")

        return result

    def start(self) -> bool:
        """Start the scheduler with the refresh job"""
        if self.is_running:
            logger.warning("Scheduler already running")
            return True

        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            self.run_refresh_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id='gate_metrics_refresh',
            name='Gate Metrics Refresh Job',
            replace_existing=True,
            max_instances=1,
            next_run_time=datetime.now()
        )

        self.scheduler.start()
        self.is_running = True
        logger.info(f"Refresh scheduler started. Running every {self.interval_minutes} minutes.")
        return True

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler and self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Refresh scheduler stopped")

    def get_status(self) -> dict:
        return {
            'is_running': self.is_running,
            'interval_minutes': self.interval_minutes,
            'last_run': self.last_run.isoformat() if self.last_run else None,
            'last_status': self.last_status
        }
