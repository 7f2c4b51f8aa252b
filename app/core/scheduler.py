"""
Periodic sync triggers.

Two interval jobs keep the mirror fresh:
- games_sync:    pre-match + live listings (GAMES_SYNC_INTERVAL_SECONDS)
- liveodds_sync: odds for live in-play games (LIVEODDS_SYNC_INTERVAL_SECONDS)

Each run opens its own session and reuses the process-wide upstream client.

Scheduler: APScheduler (lightweight, FastAPI-compatible)
"""
import logging
import uuid
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.logging import set_correlation_id, clear_correlation_id
from app.services.bookies_api_service import BookiesApiService
from app.services.sync import GameSynchronizer, LiveOddsSynchronizer

logger = logging.getLogger(__name__)


class AutomationScheduler:
    """
    Scheduler for the two sync jobs.

    Jobs never overlap with themselves (max_instances=1) and missed runs are
    coalesced into one.
    """

    def __init__(self, client: BookiesApiService):
        self.client = client
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting sync scheduler...")

        self.scheduler = AsyncIOScheduler(
            timezone='UTC',
            job_defaults={
                'coalesce': True,
                'max_instances': 1,
                'misfire_grace_time': 60
            }
        )

        self.scheduler.add_job(
            self.run_games_sync,
            trigger=IntervalTrigger(seconds=settings.GAMES_SYNC_INTERVAL_SECONDS),
            id='games_sync',
            name='Sync games (pre + live)',
        )
        self.scheduler.add_job(
            self.run_liveodds_sync,
            trigger=IntervalTrigger(seconds=settings.LIVEODDS_SYNC_INTERVAL_SECONDS),
            id='liveodds_sync',
            name='Sync live odds',
        )

        self.scheduler.start()
        self.running = True

        logger.info("✅ Scheduler started with %d jobs", len(self.scheduler.get_jobs()))
        for job in self.scheduler.get_jobs():
            logger.info(f"  - {job.name} (id={job.id}, next run {job.next_run_time})")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping scheduler...")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("✅ Scheduler stopped")

    async def run_games_sync(self) -> Optional[int]:
        """Job body: one games sync. Errors are logged, never raised."""
        token = set_correlation_id(f"job-games-{uuid.uuid4().hex[:8]}")
        db = SessionLocal()
        try:
            return await GameSynchronizer(db, self.client, settings.TRACKED_SPORTS).sync_games()
        except Exception as e:
            logger.error(f"❌ Scheduled games sync failed: {e}")
            return None
        finally:
            db.close()
            clear_correlation_id(token)

    async def run_liveodds_sync(self) -> Optional[int]:
        """Job body: one live-odds sync. Errors are logged, never raised."""
        token = set_correlation_id(f"job-liveodds-{uuid.uuid4().hex[:8]}")
        db = SessionLocal()
        try:
            return await LiveOddsSynchronizer(db, self.client).sync_live_odds()
        except Exception as e:
            logger.error(f"❌ Scheduled live odds sync failed: {e}")
            return None
        finally:
            db.close()
            clear_correlation_id(token)


_scheduler: Optional[AutomationScheduler] = None


async def start_scheduler(client: BookiesApiService) -> AutomationScheduler:
    """Start the global scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AutomationScheduler(client)
        await _scheduler.start()
    return _scheduler


async def stop_scheduler():
    """Stop the global scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None


def get_scheduler() -> Optional[AutomationScheduler]:
    """Get the global scheduler instance."""
    return _scheduler
