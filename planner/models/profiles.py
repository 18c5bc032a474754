
from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from planner.database.db import Base


class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the backend's auth user
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
