"""APScheduler job definitions and scheduler management.

Builds a BackgroundScheduler with an IntervalTrigger that re-dispatches
verification requests whose last delivery failed, and provides
start/shutdown/status helpers for the FastAPI lifespan.
"""

from __future__ import annotations

import logging
from functools import partial

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from verihire.core.config import settings
from verihire.scheduler.lock import acquire_resend_lock, release_resend_lock
from verihire.services.verification_requests import VerificationRequestService

logger = logging.getLogger(__name__)

RESEND_JOB_ID = "resend_failed_dispatches"


def run_resend_job(requests: VerificationRequestService) -> int | None:
    """One resend sweep. Skips when a previous sweep is still running."""
    if not acquire_resend_lock():
        logger.info("resend_job_skipped", extra={"reason": "already_running"})
        return None
    try:
        return requests.resend_failed_dispatches()
    except Exception as exc:
        logger.error(
            "resend_job_failed",
            extra={
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
        )
        return None
    finally:
        release_resend_lock()


def build_scheduler(
    requests: VerificationRequestService,
    interval_minutes: int | None = None,
) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        partial(run_resend_job, requests),
        IntervalTrigger(minutes=interval_minutes or settings.RESEND_INTERVAL_MINUTES),
        id=RESEND_JOB_ID,
        replace_existing=True,
    )
    return scheduler


def start_scheduler(scheduler: BackgroundScheduler) -> None:
    scheduler.start()
    logger.info(
        "scheduler_started",
        extra={
            "interval_minutes": settings.RESEND_INTERVAL_MINUTES,
        },
    )


def shutdown_scheduler(scheduler: BackgroundScheduler) -> None:
    """Shutdown the scheduler gracefully (lifespan cleanup)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")


def is_scheduler_running(scheduler: BackgroundScheduler | None) -> bool:
    return scheduler is not None and scheduler.running
