from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from planner.core.security import get_current_user, get_event_for_user
from planner.database.db import get_db
from planner.models.events import Event
from planner.models.guests import Guest
from planner.schemas.auth import AuthUser
from planner.schemas.guests import GuestAssign, GuestCreate, GuestOut
from planner.services.events import can_access_event
from planner.services.exceptions import (
    ApartmentFullError,
    EventLockedError,
    InvalidInputError,
    LockUnavailableError,
    NotFoundError,
)
from planner.services.guests import add_guest, assign_guest, delete_guest, list_guests, search_guests

router = APIRouter(tags=["guests"])


def _guest_for_user(guest_id: str, user: AuthUser, db: Session) -> Guest:
    guest = db.get(Guest, guest_id)
    if not guest or not can_access_event(db, guest.event, user.id):
        raise HTTPException(status_code=404, detail="Guest not found")
    return guest


@router.get("/events/{event_id}/guests", response_model=list[GuestOut])
def event_guests(
    apartment_id: str | None = None,
    unassigned: bool = False,
    event: Event = Depends(get_event_for_user),
    db: Session = Depends(get_db),
):
    return list_guests(db, event.id, apartment_id=apartment_id, unassigned=unassigned)


@router.get("/events/{event_id}/guests/search", response_model=list[GuestOut])
def event_guest_search(q: str = "", event: Event = Depends(get_event_for_user), db: Session = Depends(get_db)):
    return search_guests(db, event.id, q)


@router.post("/events/{event_id}/guests", response_model=GuestOut, status_code=201)
def create_guest(payload: GuestCreate, event: Event = Depends(get_event_for_user), db: Session = Depends(get_db)):
    try:
        return add_guest(db, event_id=event.id, **payload.model_dump())
    except EventLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ApartmentFullError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LockUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/guests/{guest_id}", response_model=GuestOut)
def move_guest(
    guest_id: str,
    payload: GuestAssign,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    guest = _guest_for_user(guest_id, user, db)
    try:
        return assign_guest(db, guest_id=guest.id, apartment_id=payload.apartment_id)
    except EventLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ApartmentFullError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LockUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/guests/{guest_id}", status_code=204)
def remove_guest(guest_id: str, user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    guest = _guest_for_user(guest_id, user, db)
    try:
        delete_guest(db, guest.id)
    except EventLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return Response(status_code=204)
