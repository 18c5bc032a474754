import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from planner.database.db import Base
from planner.models.events import _new_id, _utcnow


class GuestType(str, enum.Enum):
    ADULT = "adult"
    CHILD = "child"


class ArrivalMode(str, enum.Enum):
    CAR = "car"
    TRANSFER = "transfer"


class Guest(Base):
    __tablename__ = "guests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    event_id: Mapped[str] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    apartment_id: Mapped[str | None] = mapped_column(ForeignKey("apartments.id"), nullable=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    guest_type: Mapped[str] = mapped_column(String(16), nullable=False, default=GuestType.ADULT.value)
    child_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    arrival_mode: Mapped[str | None] = mapped_column(String(16), nullable=True)
    checkin_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    checkout_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    extra_nights: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    allergies: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    event: Mapped["Event"] = relationship(back_populates="guests")
    apartment: Mapped["Apartment"] = relationship(back_populates="guests")
