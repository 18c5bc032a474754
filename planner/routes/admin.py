from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from planner.core.security import get_backend, require_admin
from planner.database.db import get_db
from planner.schemas.auth import AuthUser, CreateUserAndEvent, CreateUserAndEventOut
from planner.schemas.events import AdminEventDetail, EventOut, StatusChange, StatusLiteral
from planner.services.backend import BackendError, SupabaseClient
from planner.services.events import get_event, list_events, set_status_as_admin
from planner.services.exceptions import InvalidInputError, NotFoundError, ProvisioningError
from planner.services.exports import csv_filename, guests_csv, report_filename, report_html
from planner.services.guests import list_guests
from planner.services.occupancy import get_event_occupancy
from planner.services.provisioning import create_user_and_event

router = APIRouter(prefix="/admin", tags=["admin"])


def _load_event(db: Session, event_id: str):
    try:
        return get_event(db, event_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/events", response_model=list[EventOut])
def admin_events(
    status: StatusLiteral | None = None,
    q: str | None = None,
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return list_events(db, status=status, q=q)


@router.post("/create-user-and-event", response_model=CreateUserAndEventOut)
def admin_create_user_and_event(
    payload: CreateUserAndEvent,
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
    backend: SupabaseClient = Depends(get_backend),
):
    try:
        return create_user_and_event(
            db,
            backend,
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
            event_name=payload.event_name,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    except (InvalidInputError, ProvisioningError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/events/{event_id}", response_model=AdminEventDetail)
def admin_event_detail(event_id: str, admin: AuthUser = Depends(require_admin), db: Session = Depends(get_db)):
    event = _load_event(db, event_id)
    guests = list_guests(db, event.id, order_by_name=True)
    return {
        "event": event,
        "occupancy": get_event_occupancy(db, event.id),
        "guests": guests,
        "total_guests": len(guests),
        "unassigned_count": sum(1 for g in guests if not g.apartment_id),
    }


@router.post("/events/{event_id}/status", response_model=EventOut)
def admin_set_status(
    event_id: str,
    payload: StatusChange,
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
    backend: SupabaseClient = Depends(get_backend),
):
    try:
        return set_status_as_admin(
            db, backend, event_id=event_id, status=payload.status, token=admin.access_token
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=e.status_code or 502, detail=str(e))


@router.get("/events/{event_id}/export.csv")
def admin_export_csv(event_id: str, admin: AuthUser = Depends(require_admin), db: Session = Depends(get_db)):
    event = _load_event(db, event_id)
    body = guests_csv(event, list_guests(db, event.id, order_by_name=True), get_event_occupancy(db, event.id))
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(event)}"'},
    )


@router.get("/events/{event_id}/report.html")
def admin_export_report(event_id: str, admin: AuthUser = Depends(require_admin), db: Session = Depends(get_db)):
    event = _load_event(db, event_id)
    body = report_html(event, list_guests(db, event.id, order_by_name=True), get_event_occupancy(db, event.id))
    return Response(
        content=body,
        media_type="text/html; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(event)}"'},
    )
