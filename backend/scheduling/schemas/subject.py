from pydantic import BaseModel, Field, field_validator, model_validator


class SubjectBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    department: str | None = Field(default=None, max_length=200)
    has_lab: bool = False
    lecture_units: int | None = Field(default=None, ge=0, le=10)
    lab_units: int | None = Field(default=None, ge=0, le=10)
    description: str | None = Field(default=None, max_length=2000)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def apply_unit_defaults(self) -> "SubjectBase":
        if self.lecture_units is None:
            self.lecture_units = 2 if self.has_lab else 3
        if self.lab_units is None:
            self.lab_units = 1 if self.has_lab else 0
        if self.lab_units > 0 and not self.has_lab:
            raise ValueError("lab_units requires has_lab")
        return self


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    department: str | None = Field(default=None, max_length=200)
    has_lab: bool | None = None
    lecture_units: int | None = Field(default=None, ge=0, le=10)
    lab_units: int | None = Field(default=None, ge=0, le=10)
    description: str | None = Field(default=None, max_length=2000)
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else None


class SubjectOut(BaseModel):
    id: str
    code: str
    name: str
    department: str | None = None
    has_lab: bool
    lecture_units: int
    lab_units: int
    total_units: int
    required_hours: int
    description: str | None = None
    is_active: bool

    model_config = {"from_attributes": True}
