"""
Repository for the `games` table.

Provides the games write path (prune finished games, then batch upsert), the
two lookups the live-odds sync needs, and the read projection served by
/api/games.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models import Game, LiveOdd
from app.repositories.base import BaseRepository
from app.services.records import GameRecord, SOURCE_LIVE
from app.utils.timezone import start_of_utc_day, utc_now

logger = logging.getLogger(__name__)

TIME_STATUS_NOT_STARTED = "0"
TIME_STATUS_IN_PLAY = "1"

GAME_UPDATE_COLUMNS = (
    "sport", "bookmaker", "source", "league", "home_team", "away_team",
    "scores", "time_status", "starts_at", "updated_at",
)


class GameRepository(BaseRepository[Game]):
    """Data access for game listings."""

    key_columns = ("game_id",)

    def __init__(self, db: Session):
        super().__init__(Game, db)

    def upsert_games(self, games: Sequence[GameRecord]) -> int:
        """
        Replace the games snapshot.

        Games that started before today (UTC) are deleted first, then every
        record is upserted on game_id, overwriting all other columns. Both
        steps share one transaction. An empty input does nothing at all.

        Args:
            games: Records from one sync cycle

        Returns:
            Number of distinct game rows written

        Raises:
            SQLAlchemyError: if the delete or the batch fails (rolled back)
        """
        if not games:
            return 0

        now = utc_now()
        rows = []
        for g in games:
            row = g.to_row()
            row["updated_at"] = now
            rows.append(row)

        try:
            pruned = self.db.execute(
                delete(Game).where(Game.starts_at < start_of_utc_day(now))
            ).rowcount
            written = self._upsert_rows(rows, GAME_UPDATE_COLUMNS)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Upserted {written} games (pruned {pruned} finished)")
        return written

    def find_live_game_ids(self) -> List[str]:
        """Ids of games from the live feed that are currently in play."""
        stmt = (
            select(Game.game_id)
            .where(Game.source == SOURCE_LIVE, Game.time_status == TIME_STATUS_IN_PLAY)
            .order_by(Game.game_id)
        )
        return list(self.db.scalars(stmt))

    def get_sport(self, game_id: str) -> Optional[str]:
        """Sport of a game, or None if it is not stored."""
        return self.db.scalar(select(Game.sport).where(Game.game_id == game_id))

    def list_current_games(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Not-started and in-play games with their current odds.

        Games are ordered by kick-off, games without a start time last.

        Args:
            limit: Maximum number of games

        Returns:
            List of dicts ready for JSON serialization
        """
        games = self.db.scalars(
            select(Game)
            .where(Game.time_status.in_([TIME_STATUS_NOT_STARTED, TIME_STATUS_IN_PLAY]))
            .order_by(Game.starts_at.is_(None), Game.starts_at, Game.game_id)
            .limit(limit)
        ).all()
        if not games:
            return []

        odds_by_game: Dict[str, List[Dict[str, Optional[str]]]] = {g.game_id: [] for g in games}
        odds_rows = self.db.execute(
            select(LiveOdd.game_id, LiveOdd.selection_name, LiveOdd.price_dec)
            .where(LiveOdd.game_id.in_(list(odds_by_game)))
            .order_by(LiveOdd.game_id, LiveOdd.market_id, LiveOdd.selection_id)
        )
        for game_id, selection_name, price_dec in odds_rows:
            odds_by_game[game_id].append({
                "selection_name": selection_name,
                "price_dec": price_dec,
            })

        return [
            {
                "game_id": g.game_id,
                "league": g.league,
                "home_team": g.home_team,
                "away_team": g.away_team,
                "time_status": g.time_status,
                "starts_at": g.starts_at.isoformat() if g.starts_at else None,
                "odds": odds_by_game[g.game_id],
            }
            for g in games
        ]
