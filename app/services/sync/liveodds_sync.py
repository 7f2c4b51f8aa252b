"""Live-odds synchronizer: refresh `liveodds` for games currently in play.

Games are processed one at a time in game-id order. Each game's odds are
written as soon as they are fetched, so a failure on one game (fetch or
write) is logged and skipped without touching the others.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.core import metrics
from app.repositories.game_repository import GameRepository
from app.repositories.liveodds_repository import LiveOddRepository
from app.services.bookies_api_service import BookiesApiService

logger = logging.getLogger(__name__)


class LiveOddsSynchronizer:
    """Fetches odds for every live in-play game and persists them per game."""

    def __init__(self, db: Session, client: BookiesApiService):
        self.db = db
        self.client = client
        self.games_repo = GameRepository(db)
        self.odds_repo = LiveOddRepository(db)

    async def sync_live_odds(self) -> int:
        """
        Run one live-odds sync.

        Returns:
            Total odds rows written across all games

        Raises:
            SQLAlchemyError: if the live game ids cannot be read
        """
        start_time = datetime.now()
        try:
            game_ids = self.games_repo.find_live_game_ids()
        except Exception:
            metrics.record_sync_run("liveodds", "error")
            raise
        logger.info(f"Updating live odds for {len(game_ids)} games")

        inserted = 0
        failed = 0
        for game_id in game_ids:
            try:
                sport = self.games_repo.get_sport(game_id) or ""
            except Exception as e:
                logger.error(f"❌ Sport lookup error for {game_id}: {e}")
                self.db.rollback()
                failed += 1
                continue

            try:
                odds = await self.client.fetch_live_odds(game_id, sport)
            except Exception as e:
                logger.error(f"❌ Fetch odds error for {game_id}: {e}")
                failed += 1
                continue

            try:
                self.odds_repo.upsert_odds(odds)
            except Exception as e:
                logger.error(f"❌ Insert odds error for {game_id}: {e}")
                failed += 1
                continue

            inserted += len(odds)

        duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)
        metrics.record_sync_run("liveodds", "success", rows=inserted, entity="liveodds")
        logger.info(
            f"✅ Live odds sync complete: {inserted} odds, "
            f"{failed}/{len(game_ids)} games failed ({duration_ms}ms)"
        )
        return inserted
