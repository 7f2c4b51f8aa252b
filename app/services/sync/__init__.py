"""
Sync layer between the upstream odds feed and the mirror tables.

- GameSynchronizer: pre-match + live listings for every tracked sport
- LiveOddsSynchronizer: per-game odds for games currently in play
"""
from app.services.sync.game_sync import GameSynchronizer
from app.services.sync.liveodds_sync import LiveOddsSynchronizer

__all__ = ["GameSynchronizer", "LiveOddsSynchronizer"]
