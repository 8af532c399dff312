"""APScheduler setup for the accepted-match channel sync.

The job is only registered when CHANNEL_SYNC_ENABLED is set; the scheduler
itself always starts so /health reports a consistent state.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.services.channel_sync import run_channel_sync_job

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def start_scheduler() -> None:
    if settings.CHANNEL_SYNC_ENABLED:
        scheduler.add_job(
            run_channel_sync_job,
            IntervalTrigger(minutes=settings.CHANNEL_SYNC_INTERVAL_MINUTES),
            id="channel_sync",
            replace_existing=True,
        )
    scheduler.start()
    logger.info(
        "scheduler_started",
        extra={
            "channel_sync_enabled": settings.CHANNEL_SYNC_ENABLED,
            "interval_minutes": settings.CHANNEL_SYNC_INTERVAL_MINUTES,
        },
    )


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")


def is_scheduler_running() -> bool:
    return scheduler.running
