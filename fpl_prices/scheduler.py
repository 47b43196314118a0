"""
Background scheduler for periodic tasks.

Refreshes price predictions (and with them the price history snapshot)
on a fixed interval.
"""

import logging
import schedule
import time
import threading
from typing import Optional

from .config import REFRESH_INTERVAL_MINUTES
from .predictor import PricePredictor

logger = logging.getLogger(__name__)


def update_price_predictions(predictor: PricePredictor) -> bool:
    """
    Scheduled job: run one fetch cycle.

    Returns:
        True if a report was built
    """
    logger.info("[Scheduler] Starting price prediction refresh")

    report = predictor.refresh()
    if report is None:
        logger.warning("[Scheduler] Refresh failed: %s", predictor.error)
        return False

    logger.info("[Scheduler] Updated %d predictions (%d risers, %d fallers)",
                report.total_predictions, len(report.risers), len(report.fallers))
    return True


def start_scheduler(predictor: PricePredictor,
                    interval_minutes: int = REFRESH_INTERVAL_MINUTES) -> threading.Thread:
    """
    Start the background scheduler.

    Runs scheduled tasks in a daemon thread.
    """
    schedule.every(interval_minutes).minutes.do(update_price_predictions, predictor)

    def run_scheduler():
        """Background thread that runs scheduled tasks."""
        logger.info("[Scheduler] Background scheduler started (every %d min)", interval_minutes)

        while True:
            schedule.run_pending()
            time.sleep(60)  # Check every minute

    scheduler_thread = threading.Thread(target=run_scheduler, daemon=True)
    scheduler_thread.start()

    return scheduler_thread


def run_immediate_update(predictor: PricePredictor) -> bool:
    """Run an immediate refresh (for testing or manual refresh)."""
    logger.info("[Scheduler] Running immediate update")
    return update_price_predictions(predictor)


# For use in production server
_scheduler_thread: Optional[threading.Thread] = None


def initialize_scheduler(predictor: PricePredictor) -> threading.Thread:
    """Initialize the global scheduler (call once at startup)."""
    global _scheduler_thread
    if _scheduler_thread is None:
        run_immediate_update(predictor)
        _scheduler_thread = start_scheduler(predictor)
    return _scheduler_thread
