
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from planner.database.db import Base


class Apartment(Base):
    __tablename__ = "apartments"

    # Matches the element ids on the floor-plan SVGs, e.g. "apt_12" or "apt_wc"
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    structure: Mapped[str] = mapped_column(String(100), nullable=False)
    floor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)

    guests: Mapped[list["Guest"]] = relationship(back_populates="apartment")
