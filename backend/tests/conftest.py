from __future__ import annotations

import os
from typing import Any, Dict, Iterator

# In-memory database and quiet logs for every test run; must be set before
# the settings object is created on first import.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from tripplanner.core.rate_limiting import limiter  # noqa: E402
from tripplanner.db.database import create_db_engine, get_db, init_db  # noqa: E402
from tripplanner.db.repositories import TripRepository  # noqa: E402
from tripplanner.main import app  # noqa: E402

TRIP_PAYLOAD = {
    "title": "태국 푸켓 여행",
    "description": "4일간의 태국 푸켓 여행",
    "startDate": "2025-08-13",
    "endDate": "2025-08-16",
}


@pytest.fixture(autouse=True)
def disable_rate_limits(monkeypatch: pytest.MonkeyPatch) -> None:
    """Every request in the suite comes from the same client address."""
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_db_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture()
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def trip(client: TestClient) -> Dict[str, Any]:
    response = client.post("/api/trips", json=TRIP_PAYLOAD)
    assert response.status_code == 201
    return response.json()


@pytest.fixture()
def trip_id(db: Session) -> str:
    """A 4-day trip created directly through the repository."""
    trip = TripRepository(db).create(
        title=TRIP_PAYLOAD["title"],
        description=TRIP_PAYLOAD["description"],
        start_date=TRIP_PAYLOAD["startDate"],
        end_date=TRIP_PAYLOAD["endDate"],
    )
    return trip.id
