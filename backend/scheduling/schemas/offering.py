from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from scheduling.schemas.schedule import Semester, YearLevel, validate_academic_year


class TeacherAssignmentPayload(BaseModel):
    teacherId: str = Field(min_length=1, max_length=36)
    teacherName: str = Field(default="", max_length=200)
    type: Literal["lecture", "lab", "both"] = "both"


class PreferredRoomPayload(BaseModel):
    roomId: str = Field(default="", max_length=36)
    roomName: str = Field(min_length=1, max_length=100)
    roomType: str = Field(default="classroom", max_length=20)
    capacity: int = Field(default=0, ge=0, le=1000)


class OfferingBase(BaseModel):
    subjectId: str = Field(min_length=1, max_length=36)
    courseIds: list[str] = Field(min_length=1, max_length=20)
    yearLevel: YearLevel
    semester: Semester
    academicYear: str
    assignedTeachers: list[TeacherAssignmentPayload] = Field(default_factory=list, max_length=20)
    preferredRooms: list[PreferredRoomPayload] = Field(default_factory=list, max_length=20)
    capacity: int | None = Field(default=None, ge=0, le=1000)
    notes: str | None = Field(default=None, max_length=2000)
    isActive: bool = True

    @field_validator("academicYear")
    @classmethod
    def check_academic_year(cls, value: str) -> str:
        return validate_academic_year(value)

    @field_validator("courseIds")
    @classmethod
    def dedupe_courses(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(item.strip() for item in value if item.strip()))


class OfferingCreate(OfferingBase):
    pass


class OfferingUpdate(BaseModel):
    courseIds: list[str] | None = Field(default=None, min_length=1, max_length=20)
    yearLevel: YearLevel | None = None
    semester: Semester | None = None
    academicYear: str | None = None
    assignedTeachers: list[TeacherAssignmentPayload] | None = Field(default=None, max_length=20)
    preferredRooms: list[PreferredRoomPayload] | None = Field(default=None, max_length=20)
    capacity: int | None = Field(default=None, ge=0, le=1000)
    notes: str | None = Field(default=None, max_length=2000)
    isActive: bool | None = None

    @field_validator("academicYear")
    @classmethod
    def check_academic_year(cls, value: str | None) -> str | None:
        return validate_academic_year(value) if value is not None else None


class OfferingSubject(BaseModel):
    id: str
    code: str
    name: str
    hasLab: bool
    lectureUnits: int
    labUnits: int
    requiredHours: int


class OfferingOut(BaseModel):
    id: str
    subjectId: str
    subject: OfferingSubject | None = None
    courseIds: list[str]
    yearLevel: str
    semester: str
    academicYear: str
    assignedTeachers: list[dict]
    preferredRooms: list[dict]
    capacity: int | None = None
    notes: str | None = None
    isActive: bool
