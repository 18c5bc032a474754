from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


# Blank names are rejected by add_guest with a 400
class GuestCreate(BaseModel):
    first_name: str = ""
    last_name: str = ""
    guest_type: Literal["adult", "child"] = "adult"
    child_age: int | None = Field(default=None, ge=0)
    arrival_mode: Literal["car", "transfer"] | None = None
    checkin_date: date | None = None
    checkout_date: date | None = None
    extra_nights: int = Field(default=0, ge=0)
    allergies: str | None = None
    notes: str | None = None
    apartment_id: str | None = None


class GuestAssign(BaseModel):
    apartment_id: str | None = None


class GuestOut(BaseModel):
    id: str
    event_id: str
    apartment_id: str | None = None
    first_name: str
    last_name: str
    guest_type: str
    child_age: int | None = None
    arrival_mode: str | None = None
    checkin_date: date | None = None
    checkout_date: date | None = None
    extra_nights: int
    allergies: str | None = None
    notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
