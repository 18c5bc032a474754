"""
Concurrent assignments into the last free bed of an apartment.

Ten workers try to add a guest to a single-bed apartment at the same time; the
apartment lock must let exactly one of them through.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from planner.database.db import Base
from planner.models import Apartment, Event
from planner.services.exceptions import ApartmentFullError
from planner.services.guests import add_guest, list_guests


@pytest.fixture
def file_sessions(tmp_path):
    """One connection per thread, so the workers really run side by side."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def test_race_condition(file_sessions):
    with file_sessions() as db:
        db.add(Apartment(id="apt_9", structure="Lake House", floor=1, capacity=1))
        event = Event(name="Race Wedding", start_date=date(2026, 7, 1), end_date=date(2026, 7, 3), created_by="u1")
        db.add(event)
        db.commit()
        event_id = event.id

    def try_add(n: int) -> str:
        with file_sessions() as db:
            try:
                add_guest(db, event_id=event_id, first_name="Guest", last_name=str(n), apartment_id="apt_9")
            except ApartmentFullError:
                return "full"
        return "ok"

    num_requests = 10
    with ThreadPoolExecutor(max_workers=num_requests) as executor:
        results = list(executor.map(try_add, range(num_requests)))

    assert results.count("ok") == 1, f"Expected 1 successful add, got {results.count('ok')}"
    assert results.count("full") == num_requests - 1

    with file_sessions() as db:
        assert len(list_guests(db, event_id, apartment_id="apt_9")) == 1
