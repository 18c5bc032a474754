from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from planner.schemas.guests import GuestOut

StatusLiteral = Literal["draft", "submitted", "final"]


# ---------- Event ----------
class EventOut(BaseModel):
    id: str
    name: str
    start_date: date | None = None
    end_date: date | None = None
    status: StatusLiteral
    locked: bool
    created_at: datetime
    created_by: str
    submitted_at: datetime | None = None
    submitted_by: str | None = None

    class Config:
        from_attributes = True


class ClientHomeOut(BaseModel):
    event: EventOut | None = None
    is_admin: bool = False
    redirect_to: str | None = None


class StatusChange(BaseModel):
    status: StatusLiteral


# ---------- Occupancy ----------
class OccupancyRow(BaseModel):
    event_id: str
    apartment_id: str
    label: str
    capacity: int
    guests_count: int
    structure: str
    floor: int
    status: Literal["free", "partial", "full"]


class ProgressOut(BaseModel):
    total: int
    assigned: int
    unassigned: int
    percent: int = Field(ge=0, le=100)


class OccupancyOut(BaseModel):
    event_id: str
    rows: list[OccupancyRow]
    progress: ProgressOut
    first_available: str | None = None


class AdminEventDetail(BaseModel):
    event: EventOut
    occupancy: list[OccupancyRow]
    guests: list[GuestOut]
    total_guests: int
    unassigned_count: int
