import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from planner.models.events import Event, EventMember, EventStatus
from planner.models.profiles import Profile
from planner.services.backend import BackendError, SupabaseClient
from planner.services.exceptions import InvalidInputError, ProvisioningError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def create_user_and_event(
    db: Session,
    backend: SupabaseClient,
    *,
    email: str,
    password: str,
    event_name: str,
    full_name: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict:
    """
    Create a client account and its draft event.

    The auth user is created first through the backend admin API; the profile,
    event and membership rows are then written in one transaction. If that
    transaction fails the new auth user is deleted again.
    """
    email = (email or "").strip().lower()
    password = password or ""
    full_name = (full_name or "").strip()
    event_name = (event_name or "").strip()

    if not email or not password or not event_name:
        raise InvalidInputError("Missing fields: email/password/event_name")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password too short (min {MIN_PASSWORD_LENGTH} characters).")

    try:
        created = backend.admin_create_user(
            email,
            password,
            email_confirm=True,
            user_metadata={"full_name": full_name} if full_name else {},
        )
    except BackendError as e:
        raise ProvisioningError(str(e) or "Create user failed")

    user_id = created["id"]

    try:
        profile = db.get(Profile, user_id)
        if profile is None:
            profile = Profile(id=user_id, is_admin=False)
            db.add(profile)
        if full_name:
            profile.full_name = full_name

        event = Event(
            name=event_name,
            start_date=start_date,
            end_date=end_date,
            created_by=user_id,
            status=EventStatus.DRAFT.value,
        )
        db.add(event)
        db.flush()  # gets event.id

        db.add(EventMember(event_id=event.id, user_id=user_id, role="client"))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Create event for new user %s failed: %s", user_id, e)
        try:
            backend.admin_delete_user(user_id)
        except BackendError as cleanup_error:
            logger.error("Could not remove orphaned user %s: %s", user_id, cleanup_error)
        raise ProvisioningError("Create event failed")

    logger.info("Created user %s with event %s", user_id, event.id)
    return {"ok": True, "user_id": user_id, "event_id": event.id}
