"""Pytest fixtures: file-backed SQLite database, recreated for every test."""
import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.main import app
from app.services import embedding_service

# Import all models so they register with Base.metadata
from app.models.user import User                                  # noqa: F401
from app.models.community import Community, CommunityMember        # noqa: F401
from app.models.event import Event                                # noqa: F401
from app.models.rsvp import EventRSVP                             # noqa: F401
from app.models.activity import CommunityActivity                 # noqa: F401
from app.models.embedding import EventEmbedding, UserInterestVector  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session on the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def no_embedding_provider(monkeypatch):
    """Tests never reach the real embedding API."""
    monkeypatch.setattr(embedding_service, "default_embedder", lambda: None)


class FakeEmbedder:
    """Bag-of-words embedder over a fixed vocabulary; deterministic and offline."""

    model = "fake-embedding"
    VOCABULARY = ("yoga", "running", "nutrition", "chess", "hiking", "cooking")

    def __init__(self):
        self.calls = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(term)) for term in self.VOCABULARY]


@pytest.fixture
def fake_embedder(monkeypatch):
    embedder = FakeEmbedder()
    monkeypatch.setattr(embedding_service, "default_embedder", lambda: embedder)
    return embedder


# ---------------------------------------------------------------------------
# Helpers: create entities via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User", **profile) -> dict:
    """Helper: POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={"display_name": name, **profile})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_community(client: TestClient, creator_id: str, name: str = "Test Community",
                          tags: list = None, **extra) -> dict:
    """Helper: POST /api/communities and return response JSON."""
    resp = client.post("/api/communities/", json={
        "name": name,
        "created_by": creator_id,
        "tags": tags or [],
        **extra,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def join_community(client: TestClient, community_id: str, user_id: str, role: str = "member",
                   actor_user_id: str = None):
    """Helper: add a member (self-join unless an actor is given)."""
    params = {"actor_user_id": actor_user_id} if actor_user_id else {}
    return client.post(
        f"/api/communities/{community_id}/members",
        json={"user_id": user_id, "role": role},
        params=params,
    )


def make_event(client: TestClient, community_id: str, creator_id: str, title: str = "Test Event",
               start_offset_hours: float = 24, duration_hours: float = 2, **extra):
    """Helper: create an event via the API and return the raw response."""
    start = datetime.now(timezone.utc) + timedelta(hours=start_offset_hours)
    payload = {
        "community_id": community_id,
        "created_by": creator_id,
        "title": title,
        "start_time_utc": start.isoformat(),
        "end_time_utc": (start + timedelta(hours=duration_hours)).isoformat() if duration_hours else None,
        **extra,
    }
    return client.post("/api/events/", json=payload)


def rsvp(client: TestClient, event_id: str, user_id: str, status: str = "going", **extra):
    """Helper: POST /api/events/{id}/rsvp and return the raw response."""
    return client.post(f"/api/events/{event_id}/rsvp", json={"user_id": user_id, "status": status, **extra})
