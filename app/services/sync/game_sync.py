"""Game synchronizer: mirror the pre-match and live listings into `games`.

One pass fetches every (source, sport) pair one after another, in a fixed
order: all pre-match listings first, then all live listings, each in tracked
sport order. Live rows therefore win over pre-match rows for the same game in
the same batch.

A failed fetch only loses that pair's games; whatever was fetched is still
written. A failed write aborts the sync.
"""
import logging
from datetime import datetime
from typing import List, Sequence

from sqlalchemy.orm import Session

from app.core import metrics
from app.repositories.game_repository import GameRepository
from app.services.bookies_api_service import BookiesApiService
from app.services.records import GameRecord, SOURCE_LIVE, SOURCE_PRE

logger = logging.getLogger(__name__)


class GameSynchronizer:
    """Fetches the full games snapshot and hands it to the GameRepository."""

    def __init__(self, db: Session, client: BookiesApiService, sports: Sequence[str]):
        """
        Args:
            db: SQLAlchemy session for this sync
            client: Shared upstream client
            sports: Tracked sports, in fetch order
        """
        self.db = db
        self.client = client
        self.sports = list(sports)
        self.games_repo = GameRepository(db)

    async def fetch_all_games(self) -> List[GameRecord]:
        """Best-effort aggregate of every (source, sport) listing."""
        fetchers = (
            (SOURCE_PRE, self.client.fetch_pre_games),
            (SOURCE_LIVE, self.client.fetch_live_games),
        )

        all_games: List[GameRecord] = []
        for source, fetch in fetchers:
            for sport in self.sports:
                try:
                    games = await fetch(sport)
                except Exception as e:
                    logger.error(f"❌ Fetch {source} {sport} games failed: {e}")
                    continue
                all_games.extend(games)

        return all_games

    async def sync_games(self) -> int:
        """
        Run one games sync.

        Returns:
            Number of game records fetched (duplicate ids included)

        Raises:
            SQLAlchemyError: if persisting the snapshot fails
        """
        start_time = datetime.now()
        games = await self.fetch_all_games()

        try:
            written = self.games_repo.upsert_games(games)
        except Exception:
            metrics.record_sync_run("games", "error")
            raise

        duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)
        metrics.record_sync_run("games", "success", rows=written, entity="games")
        logger.info(f"✅ Games sync complete: {len(games)} games fetched, {written} rows written ({duration_ms}ms)")
        return len(games)
