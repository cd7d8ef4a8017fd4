import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from scheduling.db.base import Base

LAB_HOURS_PER_UNIT = 3


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    has_lab: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    lecture_units: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    lab_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def total_units(self) -> int:
        return self.lecture_units + self.lab_units

    @property
    def required_hours(self) -> int:
        # 1 lecture unit = 1 hour per week, 1 lab unit = 3 hours per week
        return self.lecture_units + self.lab_units * LAB_HOURS_PER_UNIT
