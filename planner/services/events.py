import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from planner.models.events import Event, EventMember, EventStatus
from planner.models.profiles import Profile
from planner.services.backend import SupabaseClient
from planner.services.exceptions import AccessDeniedError, EventLockedError, NotFoundError

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2
STATUS_RPC = "admin_set_event_status"


def is_admin(db: Session, user_id: str) -> bool:
    profile = db.get(Profile, user_id)
    return bool(profile and profile.is_admin)


def home_path(admin: bool, next_path: str | None = None) -> str:
    """Where a user lands after login: the requested page, else their dashboard."""
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return "/admin/events" if admin else "/events"


def get_event(db: Session, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


def can_access_event(db: Session, event: Event, user_id: str) -> bool:
    if event.created_by == user_id or is_admin(db, user_id):
        return True
    member = db.scalar(
        select(EventMember.id).where(EventMember.event_id == event.id, EventMember.user_id == user_id)
    )
    return member is not None


def list_events(db: Session, *, status: str | None = None, q: str | None = None) -> list[Event]:
    stmt = select(Event).order_by(Event.created_at.desc())
    if status:
        stmt = stmt.where(Event.status == EventStatus(status).value)

    q = (q or "").strip()
    if len(q) >= MIN_SEARCH_LENGTH:
        stmt = stmt.where(func.lower(Event.name).like(f"%{q.lower()}%"))
    return list(db.scalars(stmt))


def get_client_event(db: Session, user_id: str) -> Event | None:
    """The user's most recent own event, falling back to one they are a member of."""
    owned = db.scalar(
        select(Event).where(Event.created_by == user_id).order_by(Event.created_at.desc()).limit(1)
    )
    if owned:
        return owned

    event_id = db.scalar(
        select(EventMember.event_id)
        .where(EventMember.user_id == user_id)
        .order_by(EventMember.created_at.desc())
        .limit(1)
    )
    if not event_id:
        return None
    return db.get(Event, event_id)


def submit_event(db: Session, *, event_id: str, user_id: str) -> Event:
    """Owner confirms the guest list: draft -> submitted."""
    stmt = (
        update(Event)
        .where(Event.id == event_id)
        .where(Event.created_by == user_id)
        .where(Event.status == EventStatus.DRAFT.value)
        .values(
            status=EventStatus.SUBMITTED.value,
            submitted_at=datetime.now(timezone.utc),
            submitted_by=user_id,
        )
    )
    res = db.execute(stmt)
    if res.rowcount != 1:  # type: ignore
        db.rollback()
        event = get_event(db, event_id)
        if event.created_by != user_id:
            raise AccessDeniedError("Only the event owner can submit the guest list.")
        raise EventLockedError("The guest list has already been submitted.")

    db.commit()
    event = get_event(db, event_id)
    logger.info("Event %s submitted by %s", event_id, user_id)
    return event


def set_status_as_admin(
    db: Session, backend: SupabaseClient, *, event_id: str, status: str, token: str
) -> Event:
    """
    Move an event to any lifecycle state through the backend procedure, which
    checks the caller's admin rights itself.
    """
    event = get_event(db, event_id)
    status = EventStatus(status).value

    backend.rpc(STATUS_RPC, {"p_event_id": event_id, "p_status": status}, token=token)
    logger.info("Event %s status set to %s", event_id, status)

    db.refresh(event)
    return event
