from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from scheduling.api.deps import get_db
from scheduling.models.offering import SubjectOffering
from scheduling.models.subject import Subject
from scheduling.schemas.offering import OfferingCreate, OfferingOut, OfferingUpdate
from scheduling.services.catalog import find_offerings, offering_payload, overlapping_offering, subjects_by_id

router = APIRouter()


def _to_out(db: Session, offering: SubjectOffering) -> OfferingOut:
    subject = db.get(Subject, offering.subject_id)
    return OfferingOut.model_validate(offering_payload(offering, subject))


@router.get("/", response_model=list[OfferingOut])
def list_offerings(
    courseId: str | None = None,
    yearLevel: str | None = None,
    semester: str | None = None,
    academicYear: str | None = None,
    db: Session = Depends(get_db),
) -> list[OfferingOut]:
    rows = find_offerings(
        db,
        course_id=courseId,
        year_level=yearLevel,
        semester=semester,
        academic_year=academicYear,
    )
    subjects = subjects_by_id(db, [row.subject_id for row in rows])
    return [OfferingOut.model_validate(offering_payload(row, subjects.get(row.subject_id))) for row in rows]


@router.get("/{offering_id}", response_model=OfferingOut)
def get_offering(offering_id: str, db: Session = Depends(get_db)) -> OfferingOut:
    offering = db.get(SubjectOffering, offering_id)
    if offering is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Offering not found")
    return _to_out(db, offering)


@router.post("/", response_model=OfferingOut, status_code=status.HTTP_201_CREATED)
def create_offering(payload: OfferingCreate, db: Session = Depends(get_db)) -> OfferingOut:
    if db.get(Subject, payload.subjectId) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    existing = overlapping_offering(
        db,
        subject_id=payload.subjectId,
        course_ids=payload.courseIds,
        year_level=payload.yearLevel,
        semester=payload.semester,
        academic_year=payload.academicYear,
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Offering already exists for this subject, course and semester",
        )

    offering = SubjectOffering(
        subject_id=payload.subjectId,
        course_ids=payload.courseIds,
        year_level=payload.yearLevel,
        semester=payload.semester,
        academic_year=payload.academicYear,
        assigned_teachers=[item.model_dump() for item in payload.assignedTeachers],
        preferred_rooms=[item.model_dump() for item in payload.preferredRooms],
        capacity=payload.capacity,
        notes=payload.notes,
        is_active=payload.isActive,
    )
    db.add(offering)
    db.commit()
    db.refresh(offering)
    return _to_out(db, offering)


@router.put("/{offering_id}", response_model=OfferingOut)
def update_offering(offering_id: str, payload: OfferingUpdate, db: Session = Depends(get_db)) -> OfferingOut:
    offering = db.get(SubjectOffering, offering_id)
    if offering is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Offering not found")

    data = payload.model_dump(exclude_unset=True)
    columns = {
        "courseIds": "course_ids",
        "yearLevel": "year_level",
        "semester": "semester",
        "academicYear": "academic_year",
        "assignedTeachers": "assigned_teachers",
        "preferredRooms": "preferred_rooms",
        "capacity": "capacity",
        "notes": "notes",
        "isActive": "is_active",
    }
    for key, value in data.items():
        setattr(offering, columns[key], value)

    existing = overlapping_offering(
        db,
        subject_id=offering.subject_id,
        course_ids=list(offering.course_ids or []),
        year_level=offering.year_level,
        semester=offering.semester,
        academic_year=offering.academic_year,
        exclude_id=offering.id,
    )
    if existing and offering.is_active:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Offering already exists for this subject, course and semester",
        )
    db.commit()
    db.refresh(offering)
    return _to_out(db, offering)


@router.delete("/{offering_id}")
def delete_offering(offering_id: str, db: Session = Depends(get_db)) -> dict:
    offering = db.get(SubjectOffering, offering_id)
    if offering is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Offering not found")
    offering.is_active = False
    db.commit()
    return {"success": True, "message": "Offering marked inactive"}
