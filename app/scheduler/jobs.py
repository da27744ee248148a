"""
app/scheduler/jobs.py

APScheduler-based background scheduler for report housekeeping.

Schedule
--------
  report_cleanup: every ``REPORT_CLEANUP_INTERVAL_MINUTES`` (default 60),
                  deleting reports older than ``REPORT_MAX_AGE_HOURS``.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import get_report_settings
from app.services.report_storage import get_report_storage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Job: Report cleanup
# ---------------------------------------------------------------------------


def run_report_cleanup() -> int:
    """
    Delete stored reports older than the retention window.
    Failures are logged and swallowed so the next run still happens.
    """
    logger.info("Scheduler: report_cleanup starting")
    settings = get_report_settings()
    try:
        removed = get_report_storage().cleanup(settings.max_age_hours)
    except OSError as exc:
        logger.warning("Scheduler: report_cleanup failed: %s", exc)
        return 0

    logger.info("Scheduler: report_cleanup complete removed=%d", removed)
    return removed


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    settings = get_report_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_report_cleanup,
        trigger="interval",
        minutes=settings.cleanup_interval_minutes,
        id="report_cleanup",
        name="Expired report cleanup",
        replace_existing=True,
        misfire_grace_time=600,
    )

    return scheduler
