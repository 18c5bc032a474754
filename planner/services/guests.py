import logging
from datetime import date

import redis
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from planner.core.redis_config import get_redis_client
from planner.models.apartments import Apartment
from planner.models.events import Event
from planner.models.guests import ArrivalMode, Guest, GuestType
from planner.services.exceptions import (
    ApartmentFullError,
    EventLockedError,
    InvalidInputError,
    LockUnavailableError,
    NotFoundError,
)
from planner.services.occupancy import OccupancyStatus, status_of

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 30

LOCKED_MESSAGE = "Guest list confirmed: changes are locked."
FULL_MESSAGE = "This apartment is full."
LOCK_MESSAGE = "Could not acquire lock, please try again."

LOCK_TIMEOUT = 10  # seconds
LOCK_WAIT = 5


def guest_label(guest: Guest) -> str:
    base = f"{guest.first_name} {guest.last_name}"
    if guest.guest_type == GuestType.CHILD.value:
        age = f", {guest.child_age}" if guest.child_age is not None else ""
        return f"{base} (child{age})"
    return f"{base} (adult)"


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def _get_event(db: Session, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


def _ensure_editable(event: Event) -> None:
    if event.locked:
        raise EventLockedError(LOCKED_MESSAGE)


def _lock_editable_event(db: Session, event_id: str) -> Event:
    """
    Re-read the event row FOR UPDATE right before a guest write.

    A concurrent submit blocks on the row lock until the write commits, and a
    submit that already committed is seen here.
    """
    event = db.scalar(
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if not event:
        db.rollback()
        raise NotFoundError("Event not found")
    if event.locked:
        db.rollback()
        raise EventLockedError(LOCKED_MESSAGE)
    return event


def get_guest(db: Session, guest_id: str) -> Guest:
    guest = db.get(Guest, guest_id)
    if not guest:
        raise NotFoundError("Guest not found")
    return guest


def list_guests(
    db: Session,
    event_id: str,
    *,
    apartment_id: str | None = None,
    unassigned: bool = False,
    order_by_name: bool = False,
) -> list[Guest]:
    stmt = select(Guest).where(Guest.event_id == event_id)
    if unassigned:
        stmt = stmt.where(Guest.apartment_id.is_(None))
    elif apartment_id:
        stmt = stmt.where(Guest.apartment_id == apartment_id)

    if order_by_name:
        stmt = stmt.order_by(Guest.last_name, Guest.first_name)
    else:
        stmt = stmt.order_by(Guest.created_at)
    return list(db.scalars(stmt))


def search_guests(db: Session, event_id: str, query: str) -> list[Guest]:
    """Case-insensitive match on first or last name; short queries match nothing."""
    q = (query or "").strip()
    if len(q) < MIN_SEARCH_LENGTH:
        return []

    pattern = f"%{q.lower()}%"
    stmt = (
        select(Guest)
        .where(Guest.event_id == event_id)
        .where(or_(func.lower(Guest.first_name).like(pattern), func.lower(Guest.last_name).like(pattern)))
        .order_by(Guest.last_name)
        .limit(SEARCH_LIMIT)
    )
    return list(db.scalars(stmt))


def _count_in_apartment(db: Session, event_id: str, apartment_id: str) -> int:
    count = db.scalar(
        select(func.count(Guest.id)).where(
            Guest.event_id == event_id,
            Guest.apartment_id == apartment_id,
        )
    )
    return int(count or 0)


def _ensure_capacity(db: Session, event_id: str, apartment_id: str) -> None:
    apartment = db.get(Apartment, apartment_id)
    if not apartment:
        raise NotFoundError("Apartment not found")

    guests = _count_in_apartment(db, event_id, apartment_id)
    if status_of(apartment.capacity, guests) == OccupancyStatus.FULL:
        raise ApartmentFullError(FULL_MESSAGE)


def apartment_lock_key(event_id: str, apartment_id: str) -> str:
    return f"apartment_lock:{event_id}:{apartment_id}"


def _with_apartment_lock(event_id: str, apartment_id: str | None, fn):
    """
    Run fn while holding the apartment's Redis lock, so two concurrent
    assignments cannot both take the last bed.
    """
    if apartment_id is None:
        return fn()

    redis_client = get_redis_client()
    lock_key = apartment_lock_key(event_id, apartment_id)
    lock = redis_client.lock(lock_key, timeout=LOCK_TIMEOUT, blocking_timeout=LOCK_WAIT)

    try:
        acquired = lock.acquire(blocking=True, blocking_timeout=LOCK_WAIT)
    except redis.exceptions.RedisError as e:
        logger.warning("Could not acquire %s: %s", lock_key, e)
        raise LockUnavailableError(LOCK_MESSAGE) from e
    if not acquired:
        raise LockUnavailableError(LOCK_MESSAGE)

    try:
        return fn()
    finally:
        # fn() has committed by now
        try:
            lock.release()
        except redis.exceptions.RedisError as e:
            logger.warning("Could not release %s: %s", lock_key, e)


def add_guest(
    db: Session,
    *,
    event_id: str,
    first_name: str,
    last_name: str,
    guest_type: str = GuestType.ADULT.value,
    child_age: int | None = None,
    arrival_mode: str | None = None,
    checkin_date: date | None = None,
    checkout_date: date | None = None,
    extra_nights: int = 0,
    allergies: str | None = None,
    notes: str | None = None,
    apartment_id: str | None = None,
) -> Guest:
    event = _get_event(db, event_id)
    _ensure_editable(event)

    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    if not first_name or not last_name:
        raise InvalidInputError("First and last name are required.")

    try:
        guest_type = GuestType(guest_type).value
        arrival_mode = ArrivalMode(arrival_mode).value if arrival_mode else None
    except ValueError as e:
        raise InvalidInputError(str(e))
    if guest_type == GuestType.CHILD.value and child_age is None:
        raise InvalidInputError("Enter the child's age.")
    if extra_nights is None:
        extra_nights = 0
    if extra_nights < 0:
        raise InvalidInputError("Extra nights cannot be negative.")

    def _insert() -> Guest:
        current = _lock_editable_event(db, event_id)
        if apartment_id:
            _ensure_capacity(db, event_id, apartment_id)

        guest = Guest(
            event_id=event_id,
            apartment_id=apartment_id or None,
            first_name=first_name,
            last_name=last_name,
            guest_type=guest_type,
            child_age=child_age if guest_type == GuestType.CHILD.value else None,
            arrival_mode=arrival_mode,
            # The stay defaults to the dates the venue set for the event
            checkin_date=checkin_date or current.start_date,
            checkout_date=checkout_date or current.end_date,
            extra_nights=extra_nights,
            allergies=_clean(allergies),
            notes=_clean(notes),
        )
        db.add(guest)
        db.commit()
        db.refresh(guest)
        return guest

    guest = _with_apartment_lock(event_id, apartment_id or None, _insert)
    logger.info("Added guest %s to event %s (apartment=%s)", guest.id, event_id, guest.apartment_id)
    return guest


def assign_guest(db: Session, *, guest_id: str, apartment_id: str | None) -> Guest:
    """Move a guest to an apartment, or back to unassigned with apartment_id=None."""
    guest = get_guest(db, guest_id)
    event = _get_event(db, guest.event_id)
    _ensure_editable(event)

    apartment_id = apartment_id or None
    if apartment_id == guest.apartment_id:
        return guest

    def _move() -> Guest:
        _lock_editable_event(db, guest.event_id)
        if apartment_id:
            _ensure_capacity(db, guest.event_id, apartment_id)
        guest.apartment_id = apartment_id
        db.commit()
        db.refresh(guest)
        return guest

    _with_apartment_lock(guest.event_id, apartment_id, _move)
    logger.info("Moved guest %s to apartment %s", guest.id, apartment_id)
    return guest


def delete_guest(db: Session, guest_id: str) -> None:
    guest = get_guest(db, guest_id)
    event = _get_event(db, guest.event_id)
    _ensure_editable(event)

    _lock_editable_event(db, event.id)
    db.delete(guest)
    db.commit()
    logger.info("Deleted guest %s from event %s", guest_id, event.id)
