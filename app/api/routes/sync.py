"""Sync trigger routes.

- GET /sync-games       run the games sync now
- GET /update-liveodds  run the live-odds sync now

Both reply 200 with a count, or 500 with {"error": message}.
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.services.bookies_api_service import BookiesApiService
from app.services.sync import GameSynchronizer, LiveOddsSynchronizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


def get_bookies_client(request: Request) -> BookiesApiService:
    """Dependency returning the process-wide upstream client."""
    client = getattr(request.app.state, "bookies_client", None)
    if client is None:
        client = BookiesApiService.from_settings(settings)
        request.app.state.bookies_client = client
    return client


def get_game_synchronizer(
    db: Session = Depends(get_db),
    client: BookiesApiService = Depends(get_bookies_client)
) -> GameSynchronizer:
    return GameSynchronizer(db, client, settings.TRACKED_SPORTS)


def get_liveodds_synchronizer(
    db: Session = Depends(get_db),
    client: BookiesApiService = Depends(get_bookies_client)
) -> LiveOddsSynchronizer:
    return LiveOddsSynchronizer(db, client)


@router.get("/sync-games")
async def sync_games(
    synchronizer: GameSynchronizer = Depends(get_game_synchronizer)
) -> Dict:
    """Fetch pre-match and live games for all tracked sports and store them."""
    try:
        count = await synchronizer.sync_games()
    except Exception as e:
        logger.error(f"Manual games sync failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return {"status": "Games synced", "count": count}


@router.get("/update-liveodds")
async def update_liveodds(
    synchronizer: LiveOddsSynchronizer = Depends(get_liveodds_synchronizer)
) -> Dict:
    """Refresh odds for every live in-play game."""
    try:
        inserted = await synchronizer.sync_live_odds()
    except Exception as e:
        logger.error(f"Manual live odds sync failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return {"status": "Odds updated", "inserted": inserted}
