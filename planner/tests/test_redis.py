"""
Test Redis integration: the per-apartment lock and the photo cache.
"""
import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from planner.models import Event
from planner.services import guests as guest_service
from planner.services.exceptions import LockUnavailableError
from planner.services.guests import add_guest, apartment_lock_key, assign_guest, list_guests
from planner.services.photos import PHOTO_CACHE_TTL, list_apartment_photos


class TestRedisLock:
    """Test the lock that guards apartment capacity checks."""

    def test_redis_lock_blocking(self, fake_redis):
        """Test that a lock cannot be acquired twice."""
        lock1 = fake_redis.lock("resource_lock", timeout=10)
        lock2 = fake_redis.lock("resource_lock", timeout=10)

        assert lock1.acquire(blocking=False) is True
        assert lock2.acquire(blocking=False) is False

        lock1.release()
        assert lock2.acquire(blocking=False) is True
        lock2.release()

    def test_lock_key_is_per_event_and_apartment(self):
        assert apartment_lock_key("ev1", "apt_3") == "apartment_lock:ev1:apt_3"
        assert apartment_lock_key("ev1", "apt_3") != apartment_lock_key("ev2", "apt_3")

    def test_lock_released_after_add(self, db_session: Session, event: Event, fake_redis):
        add_guest(db_session, event_id=event.id, first_name="A", last_name="B", apartment_id="apt_2")

        lock = fake_redis.lock(apartment_lock_key(event.id, "apt_2"), timeout=10)
        assert lock.acquire(blocking=False) is True
        lock.release()

    def test_add_fails_while_apartment_locked(
        self, db_session: Session, event: Event, fake_redis, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(guest_service, "LOCK_WAIT", 0.1)
        held = fake_redis.lock(apartment_lock_key(event.id, "apt_2"), timeout=10)
        assert held.acquire(blocking=False)

        with pytest.raises(LockUnavailableError):
            add_guest(db_session, event_id=event.id, first_name="A", last_name="B", apartment_id="apt_2")
        held.release()

        assert list_guests(db_session, event.id) == []

    def test_other_apartments_not_blocked(
        self, db_session: Session, event: Event, fake_redis, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(guest_service, "LOCK_WAIT", 0.1)
        held = fake_redis.lock(apartment_lock_key(event.id, "apt_2"), timeout=10)
        assert held.acquire(blocking=False)

        guest = add_guest(db_session, event_id=event.id, first_name="A", last_name="B", apartment_id="apt_1")
        assert guest.apartment_id == "apt_1"

        # Unassigning takes no lock
        assert assign_guest(db_session, guest_id=guest.id, apartment_id=None).apartment_id is None
        held.release()


class TestPhotoCache:
    def test_cached_with_ttl(self, backend, fake_redis):
        backend.list_objects.return_value = [{"name": "1.jpg"}]

        urls = list_apartment_photos(backend, "apt_1")

        assert json.loads(fake_redis.get("apartment_photos:apt_1")) == urls
        assert 0 < fake_redis.ttl("apartment_photos:apt_1") <= PHOTO_CACHE_TTL

    def test_empty_listing_not_cached(self, backend, fake_redis):
        backend.list_objects.return_value = [{"name": ".emptyFolderPlaceholder"}]

        assert list_apartment_photos(backend, "apt_1") == []
        assert fake_redis.get("apartment_photos:apt_1") is None

    def test_refresh_bypasses_cache(self, backend, fake_redis):
        fake_redis.set("apartment_photos:apt_1", json.dumps(["stale"]))
        backend.list_objects.return_value = [{"name": "new.jpg"}]

        assert list_apartment_photos(backend, "apt_1") == ["stale"]
        fresh = list_apartment_photos(backend, "apt_1", refresh=True)

        assert fresh == ["https://backend.test/storage/v1/object/public/apartment-photos/apt_1/new.jpg"]
        backend.list_objects.assert_called_once_with("apartment-photos", "apt_1", limit=100)


class TestRedisUnavailable:
    """Redis outages turn into readable errors, or are skipped where Redis only caches."""

    def test_add_reports_lock_unavailable(self, db_session: Session, event: Event, fake_server):
        fake_server.connected = False

        with pytest.raises(LockUnavailableError, match="try again"):
            add_guest(db_session, event_id=event.id, first_name="A", last_name="B", apartment_id="apt_2")
        assert list_guests(db_session, event.id) == []

    def test_unassigned_add_needs_no_redis(self, db_session: Session, event: Event, fake_server):
        fake_server.connected = False

        guest = add_guest(db_session, event_id=event.id, first_name="A", last_name="B")
        assert guest.apartment_id is None

    def test_api_add_and_move_conflict(self, client: TestClient, event: Event, client_headers, fake_server):
        guest_id = client.post(
            f"/events/{event.id}/guests", json={"first_name": "A", "last_name": "B"}, headers=client_headers
        ).json()["id"]
        fake_server.connected = False

        response = client.post(
            f"/events/{event.id}/guests",
            json={"first_name": "C", "last_name": "D", "apartment_id": "apt_2"},
            headers=client_headers,
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "Could not acquire lock, please try again."

        moved = client.patch(f"/guests/{guest_id}", json={"apartment_id": "apt_2"}, headers=client_headers)
        assert moved.status_code == 409

    def test_photos_listed_without_cache(self, backend, fake_server):
        fake_server.connected = False
        backend.list_objects.return_value = [{"name": "1.jpg"}]

        expected = ["https://backend.test/storage/v1/object/public/apartment-photos/apt_1/1.jpg"]
        assert list_apartment_photos(backend, "apt_1") == expected
        assert list_apartment_photos(backend, "apt_1", refresh=True) == expected

    def test_api_photos_without_cache(self, client: TestClient, backend, event: Event, client_headers, fake_server):
        fake_server.connected = False
        backend.list_objects.return_value = [{"name": "1.jpg"}]

        response = client.get("/apartments/apt_1/photos", headers=client_headers)
        assert response.status_code == 200
        assert len(response.json()) == 1


class TestLockExpiry:
    def test_saved_guest_survives_lost_lock(
        self, db_session: Session, event: Event, fake_redis, monkeypatch: pytest.MonkeyPatch
    ):
        check_capacity = guest_service._ensure_capacity

        def check_then_expire(db, event_id, apartment_id):
            check_capacity(db, event_id, apartment_id)
            fake_redis.delete(apartment_lock_key(event_id, apartment_id))

        monkeypatch.setattr(guest_service, "_ensure_capacity", check_then_expire)

        guest = add_guest(db_session, event_id=event.id, first_name="A", last_name="B", apartment_id="apt_2")

        assert guest.apartment_id == "apt_2"
        assert len(list_guests(db_session, event.id)) == 1
