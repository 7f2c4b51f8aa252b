"""
Normalized records produced by the upstream client.

These are transient: a synchronizer holds them for one cycle and hands them to
a repository, which turns them into rows.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional

SOURCE_PRE = "pre"
SOURCE_LIVE = "live"


@dataclass
class GameRecord:
    """One game from the pre-match or live listing."""
    game_id: str
    sport: str
    bookmaker: str
    source: str  # SOURCE_PRE or SOURCE_LIVE
    league: str = ""
    home_team: str = ""
    away_team: str = ""
    scores: str = ""
    time_status: str = ""  # "0" not started, "1" in play
    starts_at: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LiveOddRecord:
    """One selection price, tagged with the market it was listed under."""
    game_id: str
    sport: str
    bookmaker: str
    market_id: str
    market_name: str
    selection_id: str
    selection_name: str
    line: str
    price_dec: Optional[str]
    price_frac: str
    fetched_at: datetime
    raw: str

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)
