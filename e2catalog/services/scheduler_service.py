import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from e2catalog.services.preload_service import PiconPreloader


logger = logging.getLogger(__name__)

class PreloadScheduler:
    """Scheduler for periodic picon re-preloading"""

    def __init__(
        self,
        preloader: PiconPreloader,
        cron_expression: str,
        *,
        misfire_grace_sec: int = 3600
    ):
        self.preloader = preloader
        self.cron_expression = cron_expression
        self.misfire_grace_sec = misfire_grace_sec
        self.scheduler: AsyncIOScheduler | None = None

    async def _preload_job(self) -> None:
        """Background job that re-runs the picon preload"""
        logger.info("Scheduled picon preload triggered")
        try:
            summary = await self.preloader.preload_all()
            if summary.status == "failed":
                logger.error(f"Scheduled preload failed: {summary.error}")
        except Exception as e:
            logger.error(f"Exception in scheduled preload: {e}", exc_info=True)

    def start(self) -> None:
        """Start the scheduler with the preload job"""
        if not self.cron_expression:
            logger.info("Preload schedule disabled")
            return

        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        try:
            trigger = CronTrigger.from_crontab(self.cron_expression)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", self.cron_expression, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._preload_job,
            trigger=trigger,
            id='picon_preload',
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next preload: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled preload time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job('picon_preload')
        return job.next_run_time if job else None
