from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from scheduling.api.deps import get_db
from scheduling.models.room import Room, RoomType
from scheduling.schemas.room import RoomAvailabilityOut, RoomBookingOut, RoomCreate, RoomOut, RoomUpdate
from scheduling.schemas.schedule import DAY_VALUES, TIME_PATTERN, parse_time_to_minutes
from scheduling.services.catalog import active_schedules, schedule_payload
from scheduling.services.conflict_detector import ExistingSchedule, find_room_bookings

router = APIRouter()


@router.get("/", response_model=list[RoomOut])
def list_rooms(type: RoomType | None = None, db: Session = Depends(get_db)) -> list[RoomOut]:
    query = select(Room).order_by(Room.name)
    if type is not None:
        query = query.where(Room.type == type)
    return list(db.execute(query).scalars())


@router.post("/", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(payload: RoomCreate, db: Session = Depends(get_db)) -> RoomOut:
    existing = db.execute(select(Room).where(Room.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room name already exists")
    room = Room(**payload.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@router.put("/{room_id}", response_model=RoomOut)
def update_room(room_id: str, payload: RoomUpdate, db: Session = Depends(get_db)) -> RoomOut:
    room = db.get(Room, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        existing = db.execute(select(Room).where(Room.name == data["name"], Room.id != room_id)).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room name already exists")

    for key, value in data.items():
        setattr(room, key, value)
    db.commit()
    db.refresh(room)
    return room


@router.delete("/{room_id}")
def delete_room(room_id: str, db: Session = Depends(get_db)) -> dict:
    room = db.get(Room, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    db.delete(room)
    db.commit()
    return {"success": True}


@router.get("/{room_id}/availability", response_model=RoomAvailabilityOut)
def room_availability(
    room_id: str,
    day: str = Query(...),
    startTime: str = Query(..., pattern=TIME_PATTERN.pattern),
    endTime: str = Query(..., pattern=TIME_PATTERN.pattern),
    academicYear: str | None = None,
    excludeScheduleId: str | None = None,
    db: Session = Depends(get_db),
) -> RoomAvailabilityOut:
    room = db.get(Room, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    if day not in DAY_VALUES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid day value")
    if parse_time_to_minutes(endTime) <= parse_time_to_minutes(startTime):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="endTime must be after startTime")

    schedules = [
        ExistingSchedule.from_payload(schedule_payload(item))
        for item in active_schedules(db, excludeScheduleId)
        if academicYear is None or item.academic_year == academicYear
    ]
    # Events carry the room by name; a room code is accepted as an alias.
    labels = [label for label in (room.name, room.code) if label]
    seen: set[tuple[str, str, str]] = set()
    conflicts: list[RoomBookingOut] = []
    for label in labels:
        for schedule, event in find_room_bookings(label, day, startTime, endTime, schedules):
            key = (schedule.schedule_id, event.day, event.start_time)
            if key in seen:
                continue
            seen.add(key)
            conflicts.append(
                RoomBookingOut(
                    scheduleId=schedule.schedule_id,
                    scheduleName=schedule.name,
                    courseInfo=schedule.course_info,
                    event=event.to_payload(),
                )
            )
    return RoomAvailabilityOut(available=not conflicts, conflicts=conflicts)
