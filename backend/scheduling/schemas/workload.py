from pydantic import BaseModel, ConfigDict, Field


class WorkloadValidationRequest(BaseModel):
    teacherId: str = Field(min_length=1, max_length=36)
    subjectId: str = Field(min_length=1, max_length=36)
    academicYear: str | None = None
    semester: str | None = None
    previousTeacherIds: list[str] = Field(default_factory=list)


class WorkloadValidation(BaseModel):
    """Answer of the external workload service; gates teacher selection only."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    requiresOverload: bool = False
    reason: str | None = None
    currentAssignmentUnits: float = 0
    maxUnitLimit: float | None = None
    newTotal: float = 0
