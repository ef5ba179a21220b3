"""
Scheduled jobs
APScheduler runs the nightly quotation expiry inside the application event loop
"""

from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from evm_dealer.core.config import settings
from evm_dealer.core.logging_config import get_logger
from evm_dealer.db.session import SessionLocal
from evm_dealer.services import quotation_service

logger = get_logger(__name__)

scheduler: Optional[AsyncIOScheduler] = None

EXPIRE_JOB_ID = "expire_quotations"


async def expire_quotations() -> int:
    """Cron entry point: expire SENT quotations past their validity date, failures are logged"""
    try:
        async with SessionLocal() as db:
            expired = await quotation_service.auto_expire(db)
    except Exception:
        logger.exception("Quotation expiry job failed")
        return 0
    logger.info(f"Quotation expiry job finished, {expired} expired")
    return expired


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.QUOTATION_EXPIRE_JOB_ENABLED:
        logger.info("Quotation expiry job disabled")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        expire_quotations,
        trigger=CronTrigger(
            hour=settings.QUOTATION_EXPIRE_HOUR,
            minute=settings.QUOTATION_EXPIRE_MINUTE
        ),
        id=EXPIRE_JOB_ID,
        name="Expire outdated quotations",
        replace_existing=True
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, quotation expiry daily at "
        f"{settings.QUOTATION_EXPIRE_HOUR:02d}:{settings.QUOTATION_EXPIRE_MINUTE:02d}"
    )


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    """Enabled flag, running state and next run of each registered job"""
    jobs = scheduler.get_jobs() if scheduler else []
    return {
        "enabled": settings.QUOTATION_EXPIRE_JOB_ENABLED,
        "running": bool(scheduler and scheduler.running),
        "jobs": [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in jobs
        ],
    }
