"""Repository for the `liveodds` table."""
import logging
from typing import Sequence

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.models import LiveOdd
from app.repositories.base import BaseRepository
from app.services.records import LiveOddRecord
from app.utils.timezone import liveodds_cutoff

logger = logging.getLogger(__name__)

# The (game_id, market_id, selection_id) identity is never overwritten
LIVEODD_UPDATE_COLUMNS = (
    "sport", "bookmaker", "market_name", "selection_name", "line",
    "price_dec", "price_frac", "fetched_at", "raw",
)


class LiveOddRepository(BaseRepository[LiveOdd]):
    """Data access for live odds."""

    key_columns = ("game_id", "market_id", "selection_id")

    def __init__(self, db: Session):
        super().__init__(LiveOdd, db)

    def upsert_odds(self, odds: Sequence[LiveOddRecord]) -> int:
        """
        Write one game's odds batch.

        Odds fetched more than 24 hours ago (any game) are deleted first, then
        the batch is upserted on (game_id, market_id, selection_id) in the same
        transaction. An empty input does nothing at all.

        Returns:
            Number of distinct odds rows written

        Raises:
            SQLAlchemyError: if the delete or the batch fails (rolled back)
        """
        if not odds:
            return 0

        try:
            pruned = self.db.execute(
                delete(LiveOdd).where(LiveOdd.fetched_at < liveodds_cutoff())
            ).rowcount
            written = self._upsert_rows([o.to_row() for o in odds], LIVEODD_UPDATE_COLUMNS)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.debug(f"Upserted {written} live odds (pruned {pruned} stale)")
        return written
