from typing import Literal

from pydantic import BaseModel, Field, field_validator

from scheduling.schemas.offering import OfferingOut
from scheduling.schemas.schedule import ScheduleOut, Semester, validate_academic_year


class RecyclableScheduleOut(BaseModel):
    id: str
    name: str
    academicYear: str
    semester: str
    yearLevel: str
    courseId: str
    courseCode: str
    subjectCount: int


class ScheduleDetailOut(ScheduleOut):
    subjects: list[OfferingOut] = Field(default_factory=list)


class TeacherMapping(BaseModel):
    """Replaces one teacher assignment of a source offering in the copy."""

    offeringId: str = Field(min_length=1, max_length=36)
    assignmentIndex: int = Field(ge=0)
    newTeacherId: str = Field(min_length=1, max_length=36)
    newTeacherName: str = Field(default="", max_length=200)
    assignmentType: Literal["lecture", "lab", "both"] = "both"


class RecycleRequest(BaseModel):
    sourceScheduleId: str = Field(min_length=1, max_length=36)
    targetAcademicYear: str
    targetSemester: Semester
    teacherMappings: list[TeacherMapping] = Field(default_factory=list, max_length=100)

    @field_validator("targetAcademicYear")
    @classmethod
    def check_academic_year(cls, value: str) -> str:
        return validate_academic_year(value)


class RecycleResult(BaseModel):
    success: bool
    message: str
    newScheduleId: str
    subjectsCopied: int
    teachersUpdated: int
