"""Tests for the bookiesapi.com client.

Test Strategy:
1. parse_live_odds() market-context fold and odds-key priority
2. fetch_pre_games() decoding and timestamp handling
3. fetch_live_games() defensive decoding
4. fetch_live_odds() end to end through a mocked transport
5. Transport and decode failures raise UpstreamError subclasses

All HTTP traffic goes through httpx.MockTransport; no network is used.
"""
import json
from datetime import datetime

import httpx
import pytest

from app.services.bookies_api_service import (
    BookiesApiService,
    as_text,
    get_odds_field,
    parse_live_odds,
)
from app.services.exceptions import UpstreamDecodeError, UpstreamTransportError

FETCHED_AT = datetime(2026, 10, 18, 12, 0, 0)


def _mg(market_id, name):
    return {"type": "MG", "ID": market_id, "NA": name}


def _pa(selection_id, name, odds="2/1", line="", **extra):
    record = {"type": "PA", "ID": selection_id, "NA": name, "HA": line, "OD": odds}
    record.update(extra)
    return record


class TestParseLiveOdds:
    """Test suite for the liveodds result fold."""

    def test_market_context_propagates_to_following_selections(self):
        """MG/PA/PA/MG/PA should yield 3 odds tagged M1, M1, M2."""
        results = [[
            _mg("M1", "N1"),
            _pa("S1", "Home"),
            _pa("S2", "Away"),
            _mg("M2", "N2"),
            _pa("S3", "Over"),
        ]]

        odds = parse_live_odds(results, "g-1", "soccer", "bet365", FETCHED_AT)

        assert len(odds) == 3
        assert [(o.selection_id, o.market_id, o.market_name) for o in odds] == [
            ("S1", "M1", "N1"),
            ("S2", "M1", "N1"),
            ("S3", "M2", "N2"),
        ]

    def test_market_context_carries_across_groups(self):
        """A market opened in one group applies to selections in the next group."""
        results = [
            [_mg("M1", "Match Winner"), _pa("S1", "Home")],
            [_pa("S2", "Away")],
        ]

        odds = parse_live_odds(results, "g-1", "tennis", "bet365", FETCHED_AT)

        assert [o.market_id for o in odds] == ["M1", "M1"]

    def test_selection_before_any_market_has_blank_market(self):
        """A PA before the first MG is emitted with an empty market context."""
        odds = parse_live_odds([[_pa("S1", "Home")]], "g-1", "soccer", "bet365", FETCHED_AT)

        assert len(odds) == 1
        assert odds[0].market_id == ""
        assert odds[0].market_name == ""

    def test_od_key_has_priority_over_odds(self):
        """OD should win when a record carries both OD and ODDS."""
        record = {"type": "PA", "ID": "S1", "NA": "Home", "OD": "5/2", "ODDS": "1/1"}

        odds = parse_live_odds([[_mg("M1", "N1"), record]], "g-1", "soccer", "bet365", FETCHED_AT)

        assert odds[0].price_frac == "5/2"
        assert odds[0].price_dec == "3.5"

    def test_odd_key_used_when_od_missing(self):
        record = {"type": "PA", "ID": "S1", "NA": "Home", "ODD": "1/2", "ODDS": "9/1"}

        assert get_odds_field(record) == "1/2"

    def test_selection_without_price_is_skipped(self):
        """PA records with none of OD/ODD/ODDS are dropped silently."""
        results = [[_mg("M1", "N1"), {"type": "PA", "ID": "S1", "NA": "Home"}, _pa("S2", "Away")]]

        odds = parse_live_odds(results, "g-1", "soccer", "bet365", FETCHED_AT)

        assert [o.selection_id for o in odds] == ["S2"]

    def test_unknown_record_types_are_ignored(self):
        results = [[{"type": "EV", "ID": "x"}, _mg("M1", "N1"), {"type": "CO"}, _pa("S1", "Home")]]

        odds = parse_live_odds(results, "g-1", "soccer", "bet365", FETCHED_AT)

        assert len(odds) == 1

    def test_unparseable_price_keeps_fractional_text(self):
        """A price that is not a fraction is stored without a decimal value."""
        odds = parse_live_odds([[_mg("M1", "N1"), _pa("S1", "Home", odds="SP")]], "g-1", "soccer", "bet365", FETCHED_AT)

        assert odds[0].price_dec is None
        assert odds[0].price_frac == "SP"

    def test_record_fields_and_raw(self):
        """Selection fields, fetch time and the raw upstream record are kept."""
        record = _pa("S1", "Over 2.5", odds="4/5", line="2.5", SU="0")

        odd = parse_live_odds([[_mg("M9", "Goals"), record]], "g-7", "soccer", "bet365", FETCHED_AT)[0]

        assert odd.game_id == "g-7"
        assert odd.sport == "soccer"
        assert odd.bookmaker == "bet365"
        assert odd.selection_name == "Over 2.5"
        assert odd.line == "2.5"
        assert odd.price_dec == "1.8"
        assert odd.fetched_at == FETCHED_AT
        assert json.loads(odd.raw) == record

    def test_malformed_groups_and_records_are_skipped(self):
        results = ["not-a-group", [None, 3, _mg("M1", "N1"), _pa("S1", "Home")]]

        odds = parse_live_odds(results, "g-1", "soccer", "bet365", FETCHED_AT)

        assert len(odds) == 1


class TestAsText:
    """Test suite for untyped value coercion."""

    @pytest.mark.parametrize("value, expected", [
        (None, ""),
        ("abc", "abc"),
        (12, "12"),
        (1700000000.0, "1700000000"),
        (1.5, "1.5"),
        (True, "true"),
        (False, "false"),
        ({"a": 1}, '{"a":1}'),
        ([1, 2], "[1,2]"),
    ])
    def test_coercion(self, value, expected):
        assert as_text(value) == expected


class TestFetchPreGames:
    """Test suite for fetch_pre_games."""

    @pytest.mark.asyncio
    async def test_maps_games_with_pre_source(self, upstream_client_factory):
        client = upstream_client_factory({
            ("pre", "soccer"): {"games_pre": [
                {
                    "game_id": "101",
                    "time": "1700000000",
                    "time_status": "0",
                    "league": "Premier League",
                    "home": "Arsenal",
                    "away": "Chelsea",
                    "scores": "",
                },
            ]},
        })

        games = await client.fetch_pre_games("soccer")

        assert len(games) == 1
        game = games[0]
        assert game.game_id == "101"
        assert game.sport == "soccer"
        assert game.source == "pre"
        assert game.bookmaker == "bet365"
        assert game.home_team == "Arsenal"
        assert game.away_team == "Chelsea"
        assert game.starts_at == datetime(2023, 11, 14, 22, 13, 20)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_time", ["", "0", "-5", "soon", None])
    async def test_bad_timestamps_become_none(self, upstream_client_factory, raw_time):
        client = upstream_client_factory({
            ("pre", "tennis"): {"games_pre": [{"game_id": "7", "time": raw_time}]},
        })

        games = await client.fetch_pre_games("tennis")

        assert games[0].starts_at is None

    @pytest.mark.asyncio
    async def test_numeric_fields_are_read_as_text(self, upstream_client_factory):
        """Numbers in the pre listing are accepted and stored as their text."""
        client = upstream_client_factory({
            ("pre", "soccer"): {"games_pre": [
                {"game_id": 101, "time": 1700000000, "time_status": 0, "scores": None},
            ]},
        })

        game = (await client.fetch_pre_games("soccer"))[0]

        assert game.game_id == "101"
        assert game.time_status == "0"
        assert game.scores == ""
        assert game.starts_at == datetime(2023, 11, 14, 22, 13, 20)

    @pytest.mark.asyncio
    async def test_missing_list_returns_empty(self, upstream_client_factory):
        client = upstream_client_factory({("pre", "soccer"): {"success": 1}})

        assert await client.fetch_pre_games("soccer") == []

    @pytest.mark.asyncio
    async def test_sends_credentials_and_task(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"games_pre": []})

        client = BookiesApiService(
            login="me", token="secret", transport=httpx.MockTransport(handler)
        )
        await client.fetch_pre_games("soccer")
        await client.close()

        assert seen == {
            "login": "me",
            "token": "secret",
            "task": "pre",
            "bookmaker": "bet365",
            "sport": "soccer",
        }

    @pytest.mark.asyncio
    async def test_wrong_shape_raises_decode_error(self, upstream_client_factory):
        client = upstream_client_factory({("pre", "soccer"): {"games_pre": "nope"}})

        with pytest.raises(UpstreamDecodeError):
            await client.fetch_pre_games("soccer")


class TestFetchLiveGames:
    """Test suite for fetch_live_games."""

    @pytest.mark.asyncio
    async def test_fields_are_coerced_to_text(self, upstream_client_factory):
        client = upstream_client_factory({
            ("live", "tennis"): {"games": [
                {
                    "game_id": 555,
                    "time": 1700000000,
                    "time_status": 1,
                    "league": "ATP Vienna",
                    "home": "Player A",
                    "away": "Player B",
                    "scores": {"1": {"home": "6", "away": "4"}},
                },
            ]},
        })

        games = await client.fetch_live_games("tennis")

        assert len(games) == 1
        game = games[0]
        assert game.game_id == "555"
        assert game.source == "live"
        assert game.sport == "tennis"
        assert game.time_status == "1"
        assert game.scores == '{"1":{"home":"6","away":"4"}}'
        assert game.starts_at == datetime(2023, 11, 14, 22, 13, 20)

    @pytest.mark.asyncio
    async def test_missing_fields_become_blank(self, upstream_client_factory):
        client = upstream_client_factory({("live", "soccer"): {"games": [{"game_id": "9"}]}})

        game = (await client.fetch_live_games("soccer"))[0]

        assert game.league == ""
        assert game.scores == ""
        assert game.starts_at is None

    @pytest.mark.asyncio
    async def test_missing_games_key_returns_empty(self, upstream_client_factory):
        client = upstream_client_factory({("live", "soccer"): {"success": 0}})

        assert await client.fetch_live_games("soccer") == []

    @pytest.mark.asyncio
    async def test_non_object_entries_are_skipped(self, upstream_client_factory):
        client = upstream_client_factory({("live", "soccer"): {"games": ["x", None, {"game_id": "1"}]}})

        games = await client.fetch_live_games("soccer")

        assert [g.game_id for g in games] == ["1"]

    @pytest.mark.asyncio
    async def test_non_object_body_raises_decode_error(self, upstream_client_factory):
        client = upstream_client_factory({("live", "soccer"): [1, 2, 3]})

        with pytest.raises(UpstreamDecodeError):
            await client.fetch_live_games("soccer")


class TestFetchLiveOdds:
    """Test suite for fetch_live_odds."""

    @pytest.mark.asyncio
    async def test_parses_results_in_order(self, upstream_client_factory):
        client = upstream_client_factory({
            ("liveodds", "g-1"): {"success": 1, "results": [[
                _mg("M1", "N1"), _pa("S1", "Home", odds="1/2"), _pa("S2", "Away", odds="2/1"),
                _mg("M2", "N2"), _pa("S3", "Draw", odds="3/1"),
            ]]},
        })

        odds = await client.fetch_live_odds("g-1", "soccer")

        assert [(o.market_id, o.selection_id, o.price_dec) for o in odds] == [
            ("M1", "S1", "1.5"),
            ("M1", "S2", "3"),
            ("M2", "S3", "4"),
        ]
        assert len({o.fetched_at for o in odds}) == 1

    @pytest.mark.asyncio
    async def test_missing_results_returns_empty(self, upstream_client_factory):
        client = upstream_client_factory({("liveodds", "g-1"): {"success": 0}})

        assert await client.fetch_live_odds("g-1", "soccer") == []


class TestUpstreamErrors:
    """Transport and decode failures propagate as UpstreamError subclasses."""

    @pytest.mark.asyncio
    async def test_connection_error(self, upstream_client_factory):
        client = upstream_client_factory({("pre", "soccer"): httpx.ConnectError("refused")})

        with pytest.raises(UpstreamTransportError):
            await client.fetch_pre_games("soccer")

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, upstream_client_factory):
        client = upstream_client_factory({("liveodds", "g-1"): httpx.ReadTimeout("slow")})

        with pytest.raises(UpstreamTransportError):
            await client.fetch_live_odds("g-1", "soccer")

    @pytest.mark.asyncio
    async def test_http_error_status(self, upstream_client_factory):
        client = upstream_client_factory({("live", "soccer"): httpx.Response(503, text="busy")})

        with pytest.raises(UpstreamTransportError):
            await client.fetch_live_games("soccer")

    @pytest.mark.asyncio
    async def test_invalid_json(self, upstream_client_factory):
        client = upstream_client_factory({("pre", "soccer"): httpx.Response(200, text="<html>oops")})

        with pytest.raises(UpstreamDecodeError):
            await client.fetch_pre_games("soccer")
