from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from loguru import logger

from src.config import get_settings
from src.scheduler.jobs import run_promotion_reconcile


def create_scheduler(interval_seconds: Optional[int] = None) -> BackgroundScheduler:
    interval_seconds = interval_seconds or get_settings().promotion_check_interval_seconds
    scheduler = BackgroundScheduler()

    # first run at startup, then every interval
    scheduler.add_job(
        run_promotion_reconcile,
        "interval",
        seconds=interval_seconds,
        id="promotion_reconcile",
        name="Promotion Reconcile",
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(),
    )

    logger.info(f"Scheduler configured: promotion reconcile every {interval_seconds}s")
    return scheduler


def start_scheduler(interval_seconds: Optional[int] = None) -> BackgroundScheduler:
    scheduler = create_scheduler(interval_seconds)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
