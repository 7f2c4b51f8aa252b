"""Shared pytest fixtures for the live odds mirror tests."""
import os
import json
from datetime import datetime, timedelta
from typing import Callable, Dict, Generator

# Must be set before anything imports app.core.config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_LOGIN", "test-login")
os.environ.setdefault("API_TOKEN", "test-token")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.models import Base, Game, LiveOdd
from app.services.bookies_api_service import BookiesApiService
from app.utils.timezone import utc_now


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


def make_upstream_handler(routes: Dict[tuple, object]) -> Callable[[httpx.Request], httpx.Response]:
    """
    Build an httpx.MockTransport handler for the bookiesapi endpoint.

    `routes` maps (task, sport_or_game_id) to either a JSON-serializable body,
    an httpx.Response, or an Exception to raise. Unknown routes answer
    {"games": []} / {"games_pre": []} / {"results": []} as appropriate.
    """
    defaults = {"pre": {"games_pre": []}, "live": {"games": []}, "liveodds": {"success": 1, "results": []}}

    def handler(request: httpx.Request) -> httpx.Response:
        params = request.url.params
        task = params["task"]
        key = params.get("game_id") if task == "liveodds" else params.get("sport")
        result = routes.get((task, key), defaults[task])
        if isinstance(result, Exception):
            raise result
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, content=json.dumps(result).encode())

    return handler


@pytest.fixture
def upstream_client_factory():
    """Create BookiesApiService instances backed by a MockTransport."""
    created = []

    def factory(routes: Dict[tuple, object]) -> BookiesApiService:
        client = BookiesApiService(
            login="test-login",
            token="test-token",
            bookmaker="bet365",
            base_url="https://bookiesapi.test/api/get.php",
            timeout=5.0,
            transport=httpx.MockTransport(make_upstream_handler(routes)),
        )
        created.append(client)
        return client

    return factory


def create_game(**kwargs) -> Game:
    """Helper building a valid Game row; override any column via kwargs."""
    defaults = {
        "game_id": "g-1",
        "sport": "soccer",
        "bookmaker": "bet365",
        "source": "pre",
        "league": "Premier League",
        "home_team": "Arsenal",
        "away_team": "Chelsea",
        "scores": "",
        "time_status": "0",
        "starts_at": utc_now() + timedelta(hours=3),
        "updated_at": utc_now(),
    }
    defaults.update(kwargs)
    return Game(**defaults)


def create_liveodd(**kwargs) -> LiveOdd:
    """Helper building a valid LiveOdd row; override any column via kwargs."""
    defaults = {
        "game_id": "g-1",
        "market_id": "m-1",
        "selection_id": "s-1",
        "sport": "soccer",
        "bookmaker": "bet365",
        "market_name": "Fulltime Result",
        "selection_name": "Arsenal",
        "line": "",
        "price_dec": "2.5",
        "price_frac": "3/2",
        "fetched_at": utc_now(),
        "raw": "{}",
    }
    defaults.update(kwargs)
    return LiveOdd(**defaults)


@pytest.fixture
def yesterday() -> datetime:
    return utc_now() - timedelta(days=1)


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture(scope="function")
def test_client(db_session):
    """
    FastAPI TestClient sharing the test database session.

    Not used as a context manager, so the lifespan (scheduler, real upstream
    client) never starts. Tests override get_bookies_client as needed.
    """
    from fastapi.testclient import TestClient
    from app.main import app
    from app.core.database import get_db

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
