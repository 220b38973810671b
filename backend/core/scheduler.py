"""
Background jobs: the Monday weekly digest and the hourly support-message
auto-close sweep.

`start_background_scheduler()` returns a handle that the caller owns and must
`stop()`; there is no module-level scheduler.
"""

from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger
from sqlalchemy.orm import Session

from repositories.database import SessionLocal

SessionFactory = Callable[[], Session]

WEEKLY_DIGEST_JOB_ID = "weekly_digest"
AUTO_CLOSE_JOB_ID = "auto_close_messages"


def weekly_digest_job(session_factory: SessionFactory = SessionLocal) -> int:
    """
    Send the weekly summary email to every citizen account.

    Opens its own session so it never shares state with a request.

    Returns:
        Number of summaries handed to the email provider
    """
    from services.digest_service import DigestService

    logger.info("Running weekly digest job")
    db = session_factory()
    try:
        sent = DigestService.send_weekly_summaries(db)
        logger.info(f"Weekly digest finished: {sent} summaries sent")
        return sent
    except Exception as e:
        logger.error(f"Weekly digest job failed: {e}")
        raise
    finally:
        db.close()


def auto_close_job(session_factory: SessionFactory = SessionLocal) -> int:
    """
    Close support messages that have been resolved for too long.

    Returns:
        Number of messages closed
    """
    from services.admin_message_service import AdminMessageService

    db = session_factory()
    try:
        closed = AdminMessageService.auto_close_resolved(db)
        if closed:
            logger.info(f"Auto-closed {closed} resolved support messages")
        return closed
    except Exception as e:
        logger.error(f"Auto-close job failed: {e}")
        raise
    finally:
        db.close()


class BackgroundTaskHandle:
    """Owns a running APScheduler instance until `stop()` is called."""

    def __init__(self, scheduler: BackgroundScheduler):
        self._scheduler = scheduler

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def jobs(self) -> list[dict[str, Any]]:
        """Describe scheduled jobs for monitoring."""
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat() if job.next_run_time else None
                ),
            }
            for job in self._scheduler.get_jobs()
        ]

    def stop(self, wait: bool = True) -> None:
        """Shut the scheduler down. Safe to call more than once."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Background scheduler stopped")


def start_background_scheduler(
    session_factory: SessionFactory = SessionLocal,
    run_sweep_now: bool = True,
) -> BackgroundTaskHandle:
    """
    Configure and start the background scheduler.

    Schedules:
    - Weekly digest: Mondays at 09:00
    - Support message auto-close: hourly, plus one run at startup

    Args:
        session_factory: Callable returning a new database session
        run_sweep_now: Run the auto-close sweep once immediately

    Returns:
        Handle owning the scheduler
    """
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        weekly_digest_job,
        CronTrigger(day_of_week="mon", hour=9, minute=0),
        kwargs={"session_factory": session_factory},
        id=WEEKLY_DIGEST_JOB_ID,
        name="Weekly summary emails",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.add_job(
        auto_close_job,
        IntervalTrigger(hours=1),
        kwargs={"session_factory": session_factory},
        id=AUTO_CLOSE_JOB_ID,
        name="Auto-close resolved support messages",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Background scheduler started (weekly digest, hourly auto-close)")

    if run_sweep_now:
        try:
            auto_close_job(session_factory)
        except Exception as e:
            logger.warning(f"Initial auto-close sweep failed: {e}")

    return BackgroundTaskHandle(scheduler)
