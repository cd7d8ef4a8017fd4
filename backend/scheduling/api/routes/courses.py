from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from scheduling.api.deps import get_db
from scheduling.models.course import Course
from scheduling.schemas.course import CourseCreate, CourseOut, CourseUpdate, CourseUsageOut
from scheduling.services.catalog import active_schedules, find_offerings

router = APIRouter()


@router.get("/", response_model=list[CourseOut])
def list_courses(db: Session = Depends(get_db)) -> list[CourseOut]:
    return list(db.execute(select(Course).order_by(Course.name)).scalars())


@router.get("/{course_id}", response_model=CourseOut)
def get_course(course_id: str, db: Session = Depends(get_db)) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


@router.post("/", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(payload: CourseCreate, db: Session = Depends(get_db)) -> CourseOut:
    existing = db.execute(
        select(Course).where(or_(Course.name == payload.name, Course.abbreviation == payload.abbreviation))
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course name or abbreviation already exists")
    course = Course(**payload.model_dump())
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@router.put("/{course_id}", response_model=CourseOut)
def update_course(course_id: str, payload: CourseUpdate, db: Session = Depends(get_db)) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    data = payload.model_dump(exclude_unset=True)
    clauses = []
    if "name" in data:
        clauses.append(Course.name == data["name"])
    if "abbreviation" in data:
        clauses.append(Course.abbreviation == data["abbreviation"])
    if clauses:
        existing = db.execute(select(Course).where(or_(*clauses), Course.id != course_id)).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course name or abbreviation already exists")

    for key, value in data.items():
        setattr(course, key, value)
    db.commit()
    db.refresh(course)
    return course


@router.delete("/{course_id}")
def delete_course(course_id: str, db: Session = Depends(get_db)) -> dict:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    db.delete(course)
    db.commit()
    return {"success": True}


@router.get("/{course_id}/usage", response_model=CourseUsageOut)
def course_usage(course_id: str, db: Session = Depends(get_db)) -> CourseUsageOut:
    """How much of the catalog still points at a course; checked before deleting it."""
    if db.get(Course, course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    offerings = find_offerings(db, course_id=course_id)
    subject_ids = {item.subject_id for item in offerings}
    schedules = [item for item in active_schedules(db) if item.course_id == course_id]
    return CourseUsageOut(
        has_subjects=bool(subject_ids),
        subject_count=len(subject_ids),
        offering_count=len(offerings),
        schedule_count=len(schedules),
    )
