"""
Flask Server for the Schiphol Gate Dashboard

Configures logging, builds the app and starts the background refresh.
"""

import atexit
import logging
import os

from app.config import get_config
from api.index import create_app, build_metrics_service
from services.refresh_scheduler import RefreshScheduler

config = get_config()

logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('GateDashboard')

metrics_service = build_metrics_service(config)
app = create_app(metrics_service=metrics_service, config=config)


def start_refresh_scheduler() -> RefreshScheduler:
    """Start periodic gate metrics refresh and stop it on exit"""
    scheduler = RefreshScheduler(metrics_service, config.cache.refresh_interval_minutes)
    scheduler.start()
    app.extensions['refresh_scheduler'] = scheduler
    atexit.register(scheduler.stop)
    return scheduler


if __name__ == '__main__':
    if config.features.background_refresh:
        start_refresh_scheduler()
    else:
        logger.info("Background refresh disabled - metrics refresh on demand")

    port = int(os.environ.get('PORT', '5000'))
    logger.info("=" * 60)
    logger.info("Schiphol Gate Dashboard")
    logger.info(f"Starting server on port {port}...")
    logger.info("=" * 60)

    # The reloader would start a second scheduler
    app.run(host='0.0.0.0', port=port, debug=config.debug, use_reloader=False)
