from datetime import date
from unittest.mock import Mock

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from planner.core.security import get_backend
from planner.database.db import Base, get_db
from planner.main import app
from planner.models import Apartment, Event, Profile
from planner.services.backend import BackendError, SupabaseClient

ADMIN_ID = "00000000-0000-0000-0000-00000000a001"
CLIENT_ID = "00000000-0000-0000-0000-00000000c001"
OTHER_ID = "00000000-0000-0000-0000-00000000c002"

TOKENS = {
    "admin-token": ADMIN_ID,
    "client-token": CLIENT_ID,
    "other-token": OTHER_ID,
}

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Override the database dependency
def override_get_db():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db_session():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(fake_server):
    return fakeredis.FakeRedis(server=fake_server, decode_responses=True)


@pytest.fixture(autouse=True)
def redis_client(fake_redis, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("planner.services.guests.get_redis_client", lambda: fake_redis)
    monkeypatch.setattr("planner.services.photos.get_redis_client", lambda: fake_redis)
    return fake_redis


@pytest.fixture
def backend():
    """Stand-in for the hosted backend; tokens map to the test users above."""
    mock = Mock(spec=SupabaseClient)

    def get_user(token):
        if token not in TOKENS:
            raise BackendError("invalid JWT", status_code=401)
        return {"id": TOKENS[token], "email": f"{TOKENS[token][-4:]}@example.com"}

    mock.get_user.side_effect = get_user
    mock.public_url.side_effect = (
        lambda bucket, path: f"https://backend.test/storage/v1/object/public/{bucket}/{path}"
    )
    return mock


@pytest.fixture
def client(db_session: Session, backend):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_backend] = lambda: backend
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def client_headers() -> dict[str, str]:
    return {"Authorization": "Bearer client-token"}


@pytest.fixture
def other_headers() -> dict[str, str]:
    return {"Authorization": "Bearer other-token"}


@pytest.fixture
def profiles(db_session: Session):
    db_session.add_all(
        [
            Profile(id=ADMIN_ID, is_admin=True, full_name="Venue Admin"),
            Profile(id=CLIENT_ID, is_admin=False, full_name="Anna Rossi"),
            Profile(id=OTHER_ID, is_admin=False),
        ]
    )
    db_session.commit()


@pytest.fixture
def apartments(db_session: Session) -> dict[str, Apartment]:
    rows = [
        Apartment(id="apt_1", structure="Lake House", floor=0, capacity=2),
        Apartment(id="apt_2", structure="Lake House", floor=0, capacity=4),
        Apartment(id="apt_5", structure="Lake House", floor=1, capacity=1),
        Apartment(id="apt_wc", structure="Woodcutter's House", floor=0, capacity=6),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {a.id: a for a in rows}


@pytest.fixture
def event(db_session: Session, profiles, apartments) -> Event:
    ev = Event(
        name="Anna & Marco",
        start_date=date(2026, 6, 12),
        end_date=date(2026, 6, 14),
        created_by=CLIENT_ID,
    )
    db_session.add(ev)
    db_session.commit()
    db_session.refresh(ev)
    return ev
