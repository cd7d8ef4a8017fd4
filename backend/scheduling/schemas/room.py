from pydantic import BaseModel, Field

from scheduling.models.room import RoomType


class RoomBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=50)
    type: RoomType = RoomType.classroom
    capacity: int = Field(default=0, ge=0, le=1000)
    location: str | None = Field(default=None, max_length=200)
    is_active: bool = True
    notes: str | None = Field(default=None, max_length=2000)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=50)
    type: RoomType | None = None
    capacity: int | None = Field(default=None, ge=0, le=1000)
    location: str | None = Field(default=None, max_length=200)
    is_active: bool | None = None
    notes: str | None = Field(default=None, max_length=2000)


class RoomOut(RoomBase):
    id: str

    model_config = {"from_attributes": True}


class RoomBookingOut(BaseModel):
    scheduleId: str
    scheduleName: str
    courseInfo: str
    event: dict


class RoomAvailabilityOut(BaseModel):
    available: bool
    conflicts: list[RoomBookingOut] = Field(default_factory=list)
