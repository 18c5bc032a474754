import enum

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from planner.models.apartments import Apartment
from planner.models.guests import Guest

WOODCUTTER_ID = "apt_wc"


class OccupancyStatus(str, enum.Enum):
    FREE = "free"
    PARTIAL = "partial"
    FULL = "full"


def status_of(capacity: int, guests: int) -> OccupancyStatus:
    if guests <= 0:
        return OccupancyStatus.FREE
    if guests >= capacity:
        return OccupancyStatus.FULL
    return OccupancyStatus.PARTIAL


def apartment_label(apartment_id: str) -> str:
    if apartment_id == WOODCUTTER_ID:
        return "Woodcutter's House"
    return f"Apartment {apartment_id.replace('apt_', '')}"


def get_event_occupancy(db: Session, event_id: str) -> list[dict]:
    """Guest count per apartment for one event, in floor-plan order."""
    guests_count = func.count(Guest.id)
    stmt = (
        select(Apartment.id, Apartment.capacity, Apartment.structure, Apartment.floor, guests_count)
        .outerjoin(Guest, and_(Guest.apartment_id == Apartment.id, Guest.event_id == event_id))
        .group_by(Apartment.id, Apartment.capacity, Apartment.structure, Apartment.floor)
        .order_by(Apartment.structure, Apartment.floor, Apartment.id)
    )

    rows = []
    for apartment_id, capacity, structure, floor, count in db.execute(stmt):
        rows.append(
            {
                "event_id": event_id,
                "apartment_id": apartment_id,
                "label": apartment_label(apartment_id),
                "capacity": capacity,
                "guests_count": int(count or 0),
                "structure": structure,
                "floor": floor,
                "status": status_of(capacity, int(count or 0)).value,
            }
        )
    return rows


def build_status_map(rows: list[dict]) -> dict[str, dict]:
    return {
        r["apartment_id"]: {
            "status": status_of(r["capacity"], r["guests_count"]).value,
            "capacity": r["capacity"],
            "guests": r["guests_count"],
        }
        for r in rows
    }


def first_available_apartment(rows: list[dict]) -> str | None:
    for r in rows:
        if status_of(r["capacity"], r["guests_count"]) != OccupancyStatus.FULL:
            return r["apartment_id"]
    return None


def assignment_progress(rows: list[dict], unassigned: int) -> dict:
    assigned = sum(r["guests_count"] for r in rows)
    total = assigned + unassigned
    return {
        "total": total,
        "assigned": assigned,
        "unassigned": unassigned,
        "percent": int(assigned * 100 / total + 0.5) if total > 0 else 0,
    }
