"""
bookiesapi.com client for game listings and live odds.

Three tasks of the same GET endpoint are used:
- task=pre      pre-match games, fixed object shape under "games_pre"
- task=live     live games, loosely typed; decoded defensively
- task=liveodds live odds for one game as ordered groups of tagged records

Transport and JSON-decode failures raise UpstreamError subclasses. Bad data
inside an otherwise valid payload (missing fields, odd timestamps, unparseable
prices, unknown record types) is tolerated and degrades to blank/absent values.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from app.core import metrics
from app.services.exceptions import UpstreamDecodeError, UpstreamTransportError
from app.services.odds_format import frac_to_decimal
from app.services.records import GameRecord, LiveOddRecord, SOURCE_LIVE, SOURCE_PRE
from app.utils.timezone import parse_unix_maybe, utc_now

logger = logging.getLogger(__name__)

BOOKIES_API_URL = "https://bookiesapi.com/api/get.php"

TASK_PRE = "pre"
TASK_LIVE = "live"
TASK_LIVEODDS = "liveodds"

# Record discriminators inside a liveodds result group
RECORD_MARKET_GROUP = "MG"
RECORD_PRICE = "PA"

# Checked in this order; the first key present wins
ODDS_KEYS = ("OD", "ODD", "ODDS")


class PreGamePayload(BaseModel):
    """One entry of the task=pre listing."""
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    game_id: str = ""
    time: str = ""
    time_status: str = ""
    league: str = ""
    home: str = ""
    away: str = ""
    scores: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_blank(cls, value):
        return "" if value is None else value


class PreGamesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    games_pre: Optional[List[PreGamePayload]] = None


def as_text(value: Any) -> str:
    """
    Render an untyped JSON value as text.

    None becomes "", booleans become "true"/"false", integral floats lose
    their ".0" (so epoch seconds stay parseable), containers become compact
    JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def get_odds_field(item: Dict[str, Any]) -> Optional[str]:
    """Return the price text of a PA record, or None if it carries none."""
    for key in ODDS_KEYS:
        if key in item:
            return as_text(item[key])
    return None


def parse_live_odds(
    results: List[Any],
    game_id: str,
    sport: str,
    bookmaker: str,
    fetched_at: datetime
) -> List[LiveOddRecord]:
    """
    Fold a liveodds result stream into LiveOddRecords.

    Market metadata is only sent on MG records and applies to every PA record
    that follows it until the next MG, across group boundaries. The stream must
    therefore be walked once, in upstream order.

    Args:
        results: The "results" value: a list of groups, each a list of records
        game_id: Game the odds belong to
        sport: Sport of that game
        bookmaker: Bookmaker tag for the rows
        fetched_at: Timestamp shared by every record of this fetch

    Returns:
        One LiveOddRecord per PA record that carried a price
    """
    odds: List[LiveOddRecord] = []
    current_market_id = ""
    current_market_name = ""

    for group in results:
        if not isinstance(group, list):
            continue
        for item in group:
            if not isinstance(item, dict):
                continue

            record_type = as_text(item.get("type"))
            if record_type == RECORD_MARKET_GROUP:
                current_market_id = as_text(item.get("ID"))
                current_market_name = as_text(item.get("NA"))
            elif record_type == RECORD_PRICE:
                odds_text = get_odds_field(item)
                if odds_text is None:
                    continue
                price_dec, price_frac, ok = frac_to_decimal(odds_text)
                odds.append(LiveOddRecord(
                    game_id=game_id,
                    sport=sport,
                    bookmaker=bookmaker,
                    market_id=current_market_id,
                    market_name=current_market_name,
                    selection_id=as_text(item.get("ID")),
                    selection_name=as_text(item.get("NA")),
                    line=as_text(item.get("HA")),
                    price_dec=price_dec if ok else None,
                    price_frac=price_frac,
                    fetched_at=fetched_at,
                    raw=json.dumps(item, ensure_ascii=False, separators=(",", ":")),
                ))

    return odds


class BookiesApiService:
    """
    Client for the bookiesapi.com odds feed.

    One instance (and one pooled httpx client) is created at startup and
    shared by both synchronizers. Requests are made one at a time by callers;
    no retries are attempted, the next sync cycle picks up transient failures.
    """

    def __init__(
        self,
        login: str,
        token: str,
        bookmaker: str = "bet365",
        base_url: str = BOOKIES_API_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            login: API login (query-parameter auth)
            token: API token (query-parameter auth)
            bookmaker: Bookmaker whose prices are requested
            base_url: Endpoint URL
            timeout: Per-request timeout in seconds; expiry is a transport failure
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.login = login
        self.token = token
        self.bookmaker = bookmaker
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings) -> "BookiesApiService":
        return cls(
            login=settings.API_LOGIN,
            token=settings.API_TOKEN,
            bookmaker=settings.BOOKMAKER,
            base_url=settings.UPSTREAM_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, task: str, **params: str) -> Any:
        """GET one task and return the decoded JSON body."""
        query = {
            "login": self.login,
            "token": self.token,
            "task": task,
            "bookmaker": self.bookmaker,
            **params,
        }
        client = await self._get_client()

        try:
            response = await client.get(self.base_url, params=query)
            response.raise_for_status()
        except httpx.HTTPError as e:
            metrics.record_upstream_request(task, "transport_error")
            raise UpstreamTransportError(f"{task} request failed: {e}", task=task) from e

        try:
            body = response.json()
        except ValueError as e:
            metrics.record_upstream_request(task, "decode_error")
            raise UpstreamDecodeError(f"{task} response is not valid JSON: {e}", task=task) from e

        metrics.record_upstream_request(task, "success")
        return body

    def _decode_error(self, task: str, message: str) -> UpstreamDecodeError:
        metrics.record_upstream_request(task, "decode_error")
        return UpstreamDecodeError(f"{task} response {message}", task=task)

    async def fetch_pre_games(self, sport: str) -> List[GameRecord]:
        """
        Fetch the pre-match listing for a sport.

        Args:
            sport: Upstream sport key (soccer, tennis, ...)

        Returns:
            GameRecords tagged source="pre"
        """
        body = await self._get(TASK_PRE, sport=sport)

        try:
            payload = PreGamesResponse.model_validate(body)
        except ValidationError as e:
            raise self._decode_error(TASK_PRE, f"has an unexpected shape: {e}") from e

        games = [
            GameRecord(
                game_id=g.game_id,
                sport=sport,
                bookmaker=self.bookmaker,
                source=SOURCE_PRE,
                league=g.league,
                home_team=g.home,
                away_team=g.away,
                scores=g.scores,
                time_status=g.time_status,
                starts_at=parse_unix_maybe(g.time),
            )
            for g in payload.games_pre or []
        ]

        logger.info(f"Fetched {len(games)} pre-match {sport} games")
        return games

    async def fetch_live_games(self, sport: str) -> List[GameRecord]:
        """
        Fetch the live listing for a sport.

        The live payload has no fixed schema, so every field is read from a
        plain dict and rendered as text. A body without a "games" list yields
        no games.

        Args:
            sport: Upstream sport key

        Returns:
            GameRecords tagged source="live"
        """
        body = await self._get(TASK_LIVE, sport=sport)
        if not isinstance(body, dict):
            raise self._decode_error(TASK_LIVE, "is not a JSON object")

        entries = body.get("games")
        if not isinstance(entries, list):
            logger.info(f"No live {sport} games listed")
            return []

        games = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            games.append(GameRecord(
                game_id=as_text(entry.get("game_id")),
                sport=sport,
                bookmaker=self.bookmaker,
                source=SOURCE_LIVE,
                league=as_text(entry.get("league")),
                home_team=as_text(entry.get("home")),
                away_team=as_text(entry.get("away")),
                scores=as_text(entry.get("scores")),
                time_status=as_text(entry.get("time_status")),
                starts_at=parse_unix_maybe(as_text(entry.get("time"))),
            ))

        logger.info(f"Fetched {len(games)} live {sport} games")
        return games

    async def fetch_live_odds(self, game_id: str, sport: str) -> List[LiveOddRecord]:
        """
        Fetch live odds for one game.

        Args:
            game_id: Upstream game id
            sport: Sport of the game (used to tag the rows)

        Returns:
            LiveOddRecords in upstream order, all sharing one fetched_at
        """
        body = await self._get(TASK_LIVEODDS, game_id=game_id)
        if not isinstance(body, dict):
            raise self._decode_error(TASK_LIVEODDS, "is not a JSON object")

        results = body.get("results")
        if results is None:
            results = []
        elif not isinstance(results, list):
            raise self._decode_error(TASK_LIVEODDS, "has a non-list 'results'")

        if not body.get("success"):
            logger.debug(f"liveodds for game {game_id} reported success={body.get('success')!r}")

        odds = parse_live_odds(
            results,
            game_id=game_id,
            sport=sport,
            bookmaker=self.bookmaker,
            fetched_at=utc_now(),
        )
        logger.debug(f"Parsed {len(odds)} live odds for game {game_id}")
        return odds
