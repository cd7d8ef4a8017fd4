import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from scheduling.db.base import Base


class SubjectOffering(Base):
    __tablename__ = "subject_offerings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    # One offering can serve several courses at once (combined classes).
    course_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    year_level: Mapped[str] = mapped_column(String(1), nullable=False)
    semester: Mapped[str] = mapped_column(String(10), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), index=True, nullable=False)
    assigned_teachers: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    preferred_rooms: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
