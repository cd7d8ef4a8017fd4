import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from scheduling.db.base import Base


class SessionType(str, Enum):
    lecture = "lecture"
    lab = "lab"


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), index=True, nullable=False)
    course_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    course_name: Mapped[str] = mapped_column(String(200), nullable=False)
    course_abbreviation: Mapped[str] = mapped_column(String(10), nullable=False)
    year_level: Mapped[str] = mapped_column(String(1), nullable=False)
    semester: Mapped[str] = mapped_column(String(10), nullable=False)
    # Persisted camelCase event documents; the editor grid is projected from these.
    events: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
