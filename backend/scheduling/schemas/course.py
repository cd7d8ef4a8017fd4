from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class CourseBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    abbreviation: str = Field(min_length=1, max_length=10)
    description: str = Field(default="", max_length=2000)

    @field_validator("name", "abbreviation")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Value must not be blank")
        return value


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    abbreviation: str | None = Field(default=None, min_length=1, max_length=10)
    description: str | None = Field(default=None, max_length=2000)


class CourseOut(CourseBase):
    id: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class CourseUsageOut(BaseModel):
    has_subjects: bool
    subject_count: int
    offering_count: int
    schedule_count: int
