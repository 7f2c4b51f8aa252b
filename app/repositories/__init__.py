"""
Repository layer for data access.

Repositories own the SQL for their table; synchronizers and routes only pass
records in and read plain values out.

Usage:
    from app.repositories import GameRepository
    from app.core.database import SessionLocal

    db = SessionLocal()
    live_ids = GameRepository(db).find_live_game_ids()
    db.close()
"""

from app.repositories.base import BaseRepository
from app.repositories.game_repository import GameRepository
from app.repositories.liveodds_repository import LiveOddRepository

__all__ = [
    "BaseRepository",
    "GameRepository",
    "LiveOddRepository",
]
