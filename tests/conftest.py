"""Pytest configuration and fixtures."""

from dataclasses import dataclass, replace

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from redirector import cache, service
from redirector.db import Base, get_db
from redirector.main import app
from redirector.models import Redirect

START_MS = 1_700_000_000_000


@dataclass
class FakeClock:
    now: int = START_MS

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def engine():
    """In-memory SQLite shared by every connection of the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    client = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(cache, "redis_client", client)
    monkeypatch.setattr(cache, "settings", replace(cache.settings, cache_enabled=True))
    return client


@pytest.fixture(autouse=True)
def clock(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(service, "now_ms", lambda: clock.now)
    return clock


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_row(db):
    """Insert a mapping directly, bypassing the service."""

    def _add(redirect_id, created_at=START_MS, ttl_seconds=60, url="https://example.com/"):
        row = Redirect(id=redirect_id, target_url=url, created_at=created_at, ttl_seconds=ttl_seconds)
        db.add(row)
        db.commit()
        return row

    return _add
