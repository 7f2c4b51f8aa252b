"""Read-only games projection.

GET /api/games returns up to 100 not-started or in-play games, ordered by
start time (unknown start times last), each with its current odds.
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.rate_limit import limiter
from app.repositories.game_repository import GameRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["games"])

GAMES_LIMIT = 100


@router.get("/games")
@limiter.limit("60/minute")
async def list_games(request: Request, db: Session = Depends(get_db)) -> Dict:
    """Current games with their odds (selection_name, price_dec)."""
    games = GameRepository(db).list_current_games(limit=GAMES_LIMIT)
    return {"games": games}
