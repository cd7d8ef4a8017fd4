from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from scheduling.services.events import ScheduledEvent

DAY_VALUES = {
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
ACADEMIC_YEAR_PATTERN = re.compile(r"^(\d{4})-(\d{4})$")

YearLevel = Literal["1", "2", "3", "4"]
Semester = Literal["1", "2", "summer"]
SessionTypeValue = Literal["lecture", "lab"]


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def validate_academic_year(value: str) -> str:
    match = ACADEMIC_YEAR_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Academic year must look like 2024-2025")
    first, second = (int(part) for part in match.groups())
    if second != first + 1:
        raise ValueError("Academic year must span two consecutive years")
    return value.strip()


class AssignedTeacherPayload(BaseModel):
    teacherId: str = Field(min_length=1, max_length=36)
    teacherName: str = Field(default="", max_length=200)


class ScheduleEventPayload(BaseModel):
    day: str
    startTime: str
    endTime: str
    subjectId: str = Field(min_length=1, max_length=36)
    subjectName: str = Field(default="", max_length=200)
    subjectCode: str = Field(default="", max_length=50)
    sessionType: SessionTypeValue = "lecture"
    room: str = Field(default="", max_length=100)
    assignedTeacher: AssignedTeacherPayload | None = None

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        day = value.strip()
        if day not in DAY_VALUES:
            raise ValueError("Invalid day value")
        return day

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "ScheduleEventPayload":
        if parse_time_to_minutes(self.endTime) <= parse_time_to_minutes(self.startTime):
            raise ValueError("endTime must be after startTime")
        return self

    def to_event(self) -> ScheduledEvent:
        return ScheduledEvent.from_payload(self.model_dump())


class ScheduleBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    academicYear: str
    courseId: str = Field(min_length=1, max_length=36)
    yearLevel: YearLevel
    semester: Semester
    events: list[ScheduleEventPayload] = Field(default_factory=list, max_length=500)

    @field_validator("academicYear")
    @classmethod
    def check_academic_year(cls, value: str) -> str:
        return validate_academic_year(value)


class ScheduleCreate(ScheduleBase):
    pass


class ScheduleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    academicYear: str | None = None
    courseId: str | None = Field(default=None, min_length=1, max_length=36)
    yearLevel: YearLevel | None = None
    semester: Semester | None = None
    events: list[ScheduleEventPayload] | None = Field(default=None, max_length=500)

    @field_validator("academicYear")
    @classmethod
    def check_academic_year(cls, value: str | None) -> str | None:
        return validate_academic_year(value) if value is not None else None


class ScheduleOut(BaseModel):
    id: str
    name: str
    academicYear: str
    courseId: str
    courseName: str
    courseAbbreviation: str
    yearLevel: str
    semester: str
    events: list[dict]
    isActive: bool
    createdAt: datetime | None = None
    updatedAt: datetime | None = None


class ConflictOut(BaseModel):
    type: Literal["STUDENT", "TEACHER", "ROOM", "INTERNAL"]
    scheduleName: str = ""
    courseInfo: str = ""
    day: str
    startTime: str
    endTime: str
    subject: str
    sessionType: str
    message: str


class HoursViolationOut(BaseModel):
    subjectCode: str
    subjectName: str
    sessionType: str
    scheduledHours: float
    requiredHours: float
    excessHours: float


class HoursStatusOut(BaseModel):
    required: float
    current: float
    projected: float
    status: Literal["under", "complete", "over"]


class PlacementCandidate(BaseModel):
    day: str
    startTime: str
    endTime: str
    subjectId: str = Field(min_length=1, max_length=36)
    sessionType: SessionTypeValue = "lecture"
    teacherId: str | None = Field(default=None, max_length=36)
    room: str | None = Field(default=None, max_length=100)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        day = value.strip()
        if day not in DAY_VALUES:
            raise ValueError("Invalid day value")
        return day


class PlacementCheckRequest(BaseModel):
    courseId: str = Field(min_length=1, max_length=36)
    yearLevel: YearLevel
    semester: Semester
    academicYear: str | None = None
    excludeScheduleId: str | None = None
    events: list[ScheduleEventPayload] = Field(default_factory=list, max_length=500)
    candidate: PlacementCandidate
    editing: ScheduleEventPayload | None = None


class PlacementCheckResponse(BaseModel):
    ok: bool
    error: str | None = None
    message: str | None = None
    conflicts: list[ConflictOut] = Field(default_factory=list)
    hours: HoursStatusOut | None = None
