#!/usr/bin/env python3
"""
Standalone runner for the sync jobs.

Runs the periodic games / live-odds syncs without the HTTP server, or runs a
single sync once and exits.

Usage:
    python run_scheduler.py                     # Run scheduler in foreground
    python run_scheduler.py --once games        # One games sync, then exit
    python run_scheduler.py --once liveodds     # One live-odds sync, then exit
"""
import asyncio
import argparse
import signal
import sys

from app.core.config import settings
from app.core.database import init_db, dispose_engine
from app.core.logging import configure_logging, get_logger
from app.core.scheduler import AutomationScheduler
from app.services.bookies_api_service import BookiesApiService

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


class SchedulerRunner:
    """Runner for the sync scheduler."""

    def __init__(self):
        self.client = BookiesApiService.from_settings(settings)
        self.scheduler = AutomationScheduler(self.client)
        self.shutdown = False

    async def start(self):
        """Start the scheduler and run until shutdown."""
        logger.info("🚀 Starting scheduler runner...")
        init_db()
        await self.scheduler.start()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._set_shutdown)

        try:
            while not self.shutdown:
                await asyncio.sleep(1)
        finally:
            await self.scheduler.stop()
            await self.client.close()
            dispose_engine()
            logger.info("✅ Scheduler runner stopped")

    async def run_once(self, job: str) -> bool:
        """Run one sync job immediately."""
        init_db()
        try:
            if job == "games":
                result = await self.scheduler.run_games_sync()
            else:
                result = await self.scheduler.run_liveodds_sync()
        finally:
            await self.client.close()
            dispose_engine()

        if result is None:
            print(f"❌ {job} sync failed (see logs)")
            return False
        print(f"✅ {job} sync wrote {result} rows")
        return True

    def _set_shutdown(self):
        logger.info("⏹️  Shutdown signal received")
        self.shutdown = True


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run the live odds mirror sync jobs")
    parser.add_argument(
        "--once",
        choices=["games", "liveodds"],
        help="Run a single sync and exit"
    )
    args = parser.parse_args()

    runner = SchedulerRunner()

    if args.once:
        return 0 if asyncio.run(runner.run_once(args.once)) else 1

    try:
        asyncio.run(runner.start())
    except KeyboardInterrupt:
        logger.info("🛑 Received interrupt, shutting down...")
    except Exception as e:
        logger.error(f"❌ Scheduler error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
