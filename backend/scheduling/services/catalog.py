"""Conversions from catalog rows to the shapes the editor core works with."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from scheduling.models.offering import SubjectOffering
from scheduling.models.schedule import Schedule
from scheduling.models.subject import Subject
from scheduling.services.offerings import Offering, SubjectRef, normalize_offering


def subject_ref(subject: Subject) -> SubjectRef:
    return SubjectRef(
        id=subject.id,
        code=subject.code,
        name=subject.name,
        lecture_units=float(subject.lecture_units),
        lab_units=float(subject.lab_units),
        has_lab=subject.has_lab,
    )


def subject_payload(subject: Subject) -> dict:
    return {
        "id": subject.id,
        "code": subject.code,
        "name": subject.name,
        "hasLab": subject.has_lab,
        "lectureUnits": subject.lecture_units,
        "labUnits": subject.lab_units,
        "requiredHours": subject.required_hours,
    }


def offering_payload(offering: SubjectOffering, subject: Subject | None) -> dict:
    return {
        "id": offering.id,
        "subjectId": offering.subject_id,
        "subject": subject_payload(subject) if subject is not None else None,
        "courseIds": list(offering.course_ids or []),
        "yearLevel": offering.year_level,
        "semester": offering.semester,
        "academicYear": offering.academic_year,
        "assignedTeachers": list(offering.assigned_teachers or []),
        "preferredRooms": list(offering.preferred_rooms or []),
        "capacity": offering.capacity,
        "notes": offering.notes,
        "isActive": offering.is_active,
    }


def subjects_by_id(db: Session, ids: Iterable[str]) -> dict[str, Subject]:
    wanted = {item for item in ids if item}
    if not wanted:
        return {}
    rows = db.execute(select(Subject).where(Subject.id.in_(wanted))).scalars()
    return {row.id: row for row in rows}


def find_offerings(
    db: Session,
    *,
    course_id: str | None = None,
    year_level: str | None = None,
    semester: str | None = None,
    academic_year: str | None = None,
    include_inactive: bool = False,
) -> list[SubjectOffering]:
    query = select(SubjectOffering)
    if not include_inactive:
        query = query.where(SubjectOffering.is_active.is_(True))
    if year_level is not None:
        query = query.where(SubjectOffering.year_level == str(year_level))
    if semester is not None:
        query = query.where(SubjectOffering.semester == semester)
    if academic_year is not None:
        query = query.where(SubjectOffering.academic_year == academic_year)
    rows = list(db.execute(query.order_by(SubjectOffering.created_at)).scalars())
    # course_ids is a JSON list; membership is checked here to stay portable across dialects.
    if course_id is not None:
        rows = [row for row in rows if course_id in (row.course_ids or [])]
    return rows


def context_offerings(
    db: Session,
    course_id: str,
    year_level: str,
    semester: str,
    academic_year: str | None = None,
) -> list[Offering]:
    """Offerings for a schedule context, followed by every active catalog subject as its own offering."""
    rows = find_offerings(
        db,
        course_id=course_id,
        year_level=year_level,
        semester=semester,
        academic_year=academic_year,
    )
    subjects = subjects_by_id(db, [row.subject_id for row in rows])
    offerings: list[Offering] = []
    for row in rows:
        normalized = normalize_offering(offering_payload(row, subjects.get(row.subject_id)))
        if normalized is not None:
            offerings.append(normalized)
    for subject in db.execute(select(Subject).where(Subject.is_active.is_(True))).scalars():
        normalized = normalize_offering(subject_payload(subject))
        if normalized is not None:
            offerings.append(normalized)
    return offerings


def schedule_payload(schedule: Schedule) -> dict:
    return {
        "id": schedule.id,
        "name": schedule.name,
        "academicYear": schedule.academic_year,
        "courseId": schedule.course_id,
        "courseName": schedule.course_name,
        "courseAbbreviation": schedule.course_abbreviation,
        "yearLevel": schedule.year_level,
        "semester": schedule.semester,
        "events": list(schedule.events or []),
        "isActive": schedule.is_active,
        "createdAt": schedule.created_at,
        "updatedAt": schedule.updated_at,
    }


def active_schedules(db: Session, exclude_id: str | None = None) -> list[Schedule]:
    query = select(Schedule).where(Schedule.is_active.is_(True)).order_by(Schedule.created_at)
    if exclude_id:
        query = query.where(Schedule.id != exclude_id)
    return list(db.execute(query).scalars())


def overlapping_offering(
    db: Session,
    *,
    subject_id: str,
    course_ids: list[str],
    year_level: str,
    semester: str,
    academic_year: str,
    exclude_id: str | None = None,
) -> SubjectOffering | None:
    """Active offering of the same subject and term that already serves one of ``course_ids``."""
    candidates = find_offerings(db, year_level=year_level, semester=semester, academic_year=academic_year)
    for item in candidates:
        if item.id == exclude_id or item.subject_id != subject_id:
            continue
        if set(item.course_ids or []) & set(course_ids):
            return item
    return None
