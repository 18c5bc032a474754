from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from planner.core.security import get_current_user, get_event_for_user
from planner.database.db import get_db
from planner.models.events import Event
from planner.schemas.auth import AuthUser
from planner.schemas.events import ClientHomeOut, EventOut, OccupancyOut
from planner.services.events import get_client_event, is_admin, submit_event
from planner.services.exceptions import AccessDeniedError, EventLockedError, NotFoundError
from planner.services.floorplan import load_plan, render_plan
from planner.services.guests import list_guests
from planner.services.occupancy import (
    assignment_progress,
    build_status_map,
    first_available_apartment,
    get_event_occupancy,
)

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/mine", response_model=ClientHomeOut)
def my_event(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """The client's own event; admins are pointed to their dashboard instead."""
    if is_admin(db, user.id):
        return {"event": None, "is_admin": True, "redirect_to": "/admin/events"}
    return {"event": get_client_event(db, user.id), "is_admin": False}


@router.get("/{event_id}", response_model=EventOut)
def get_event(event: Event = Depends(get_event_for_user)):
    return event


@router.get("/{event_id}/occupancy", response_model=OccupancyOut)
def event_occupancy(event: Event = Depends(get_event_for_user), db: Session = Depends(get_db)):
    rows = get_event_occupancy(db, event.id)
    unassigned = list_guests(db, event.id, unassigned=True)
    return {
        "event_id": event.id,
        "rows": rows,
        "progress": assignment_progress(rows, len(unassigned)),
        "first_available": first_available_apartment(rows),
    }


@router.get("/{event_id}/plans/{plan_key}")
def event_plan(plan_key: str, event: Event = Depends(get_event_for_user), db: Session = Depends(get_db)):
    try:
        svg = load_plan(plan_key)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    status_map = build_status_map(get_event_occupancy(db, event.id))
    return Response(content=render_plan(svg, status_map), media_type="image/svg+xml")


@router.post("/{event_id}/submit", response_model=EventOut)
def submit(
    event: Event = Depends(get_event_for_user),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return submit_event(db, event_id=event.id, user_id=user.id)
    except AccessDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except EventLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
