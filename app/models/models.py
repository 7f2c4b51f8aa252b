"""
Database models for the live odds mirror.

Two tables hold the current state only: `games` (one row per upstream game)
and `liveodds` (one row per game/market/selection). Neither keeps history;
stale rows are evicted by the repositories before each write.
"""
from sqlalchemy import Column, String, DateTime, Text, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Game(Base):
    """Game listing from the pre-match or live feed; last writer wins."""
    __tablename__ = "games"

    game_id = Column(String(64), primary_key=True)  # upstream game identifier
    sport = Column(String(32), nullable=False, index=True)  # soccer, tennis, ...
    bookmaker = Column(String(32), nullable=False)
    source = Column(String(8), nullable=False, index=True)  # 'pre' or 'live'
    league = Column(Text, nullable=False, default="")
    home_team = Column(Text, nullable=False, default="")
    away_team = Column(Text, nullable=False, default="")
    scores = Column(Text, nullable=False, default="")
    time_status = Column(String(16), nullable=False, default="", index=True)  # '0' not started, '1' in play
    starts_at = Column(DateTime, nullable=True, index=True)  # UTC, null when upstream sent no usable epoch
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index('ix_games_source_time_status', 'source', 'time_status'),
    )


class LiveOdd(Base):
    """Current price of one selection in one market of a live game."""
    __tablename__ = "liveodds"

    # game_id references games.game_id logically; not enforced so odds can
    # outlive a pruned game until their own retention window passes
    game_id = Column(String(64), primary_key=True)
    market_id = Column(String(64), primary_key=True)
    selection_id = Column(String(64), primary_key=True)
    sport = Column(String(32), nullable=False)
    bookmaker = Column(String(32), nullable=False)
    market_name = Column(Text, nullable=False, default="")
    selection_name = Column(Text, nullable=False, default="")
    line = Column(String(64), nullable=False, default="")  # handicap / spread text
    price_dec = Column(String(32), nullable=True)  # null when the fractional price was unparseable
    price_frac = Column(String(32), nullable=False, default="")
    fetched_at = Column(DateTime, nullable=False, index=True)
    raw = Column(Text, nullable=False, default="")  # upstream record as JSON
