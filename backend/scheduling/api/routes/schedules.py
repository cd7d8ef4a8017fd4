from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from scheduling.api.deps import get_db
from scheduling.core.exceptions import ConflictError, PlacementError, ScheduleValidationError
from scheduling.models.course import Course
from scheduling.models.offering import SubjectOffering
from scheduling.models.schedule import Schedule, SessionType
from scheduling.schemas.offering import OfferingOut
from scheduling.schemas.recycle import RecycleRequest, RecycleResult, RecyclableScheduleOut, ScheduleDetailOut
from scheduling.schemas.schedule import (
    PlacementCheckRequest,
    PlacementCheckResponse,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
)
from scheduling.services.catalog import (
    active_schedules,
    context_offerings,
    find_offerings,
    offering_payload,
    overlapping_offering,
    schedule_payload,
    subject_ref,
    subjects_by_id,
)
from scheduling.services.conflict_detector import (
    ExistingSchedule,
    ScheduleContext,
    find_conflicts_with_existing,
    find_time_conflicts,
)
from scheduling.services.editor import EventForm, TimetableEditor
from scheduling.services.events import AssignedTeacher, ScheduledEvent, normalize_id
from scheduling.services.hours import validate_schedule_hours
from scheduling.services.offerings import OfferingIndex
from scheduling.services.serialization import events_to_grid
from scheduling.services.time_grid import get_time_grid

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_out(schedule: Schedule) -> ScheduleOut:
    return ScheduleOut.model_validate(schedule_payload(schedule))


def _get_active_schedule(db: Session, schedule_id: str) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None or not schedule.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    return schedule


def _resolve_subject_ids(db: Session, events: list[ScheduledEvent]) -> list[ScheduledEvent]:
    """Events may reference an offering; persist the catalog subject id instead."""
    ids = {event.subject_id for event in events}
    offerings = {
        row.id: row.subject_id
        for row in db.execute(select(SubjectOffering).where(SubjectOffering.id.in_(ids))).scalars()
    } if ids else {}
    return [
        event.with_changes(subject_id=offerings[event.subject_id]) if event.subject_id in offerings else event
        for event in events
    ]


def _prepare_events(
    db: Session,
    events: list[ScheduledEvent],
    context: ScheduleContext,
    exclude_id: str | None = None,
) -> list[dict]:
    events = _resolve_subject_ids(db, events)
    subjects = subjects_by_id(db, [event.subject_id for event in events])

    unknown = sorted({event.subject_id for event in events if event.subject_id not in subjects})
    if unknown:
        raise ScheduleValidationError("Schedule references unknown subjects", details={"subjectIds": unknown})

    grid = get_time_grid()
    off_grid = [event.to_payload() for event in events if event.start_time not in grid or event.end_time not in grid]
    if off_grid:
        raise ScheduleValidationError("Event times must fall on the timetable grid", details={"events": off_grid})

    enriched: list[ScheduledEvent] = []
    for event in events:
        subject = subjects[event.subject_id]
        if event.session_type == SessionType.lab.value and not subject.has_lab:
            raise ScheduleValidationError(
                f'Subject "{subject.name}" does not have a lab component',
                details={"subjectCode": subject.code, "sessionType": event.session_type},
            )
        enriched.append(event.with_changes(subject_code=subject.code, subject_name=subject.name))

    overlaps = find_time_conflicts(enriched)
    if overlaps:
        raise ScheduleValidationError(
            "Schedule has overlapping events",
            details={"conflicts": [conflict.to_dict() for conflict in overlaps]},
        )

    existing = [ExistingSchedule.from_payload(schedule_payload(item)) for item in active_schedules(db, exclude_id)]
    conflicts = find_conflicts_with_existing(enriched, existing, context)
    if conflicts:
        raise ScheduleValidationError(
            f"Schedule conflicts with {conflicts[0].schedule_name}",
            details={"conflicts": [conflict.to_dict() for conflict in conflicts]},
        )

    violations = validate_schedule_hours(enriched, {key: subject_ref(value) for key, value in subjects.items()})
    if violations:
        raise ScheduleValidationError(
            "Subject hours exceeded",
            details={"violations": [violation.to_dict() for violation in violations]},
        )

    return [event.to_payload() for event in sorted(enriched, key=lambda item: item.sort_key)]


def _get_course(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


@router.get("/", response_model=list[ScheduleOut])
def list_schedules(db: Session = Depends(get_db)) -> list[ScheduleOut]:
    return [_to_out(item) for item in active_schedules(db)]


@router.get("/by-teacher/{teacher_id}", response_model=list[ScheduleOut])
def list_teacher_schedules(teacher_id: str, db: Session = Depends(get_db)) -> list[ScheduleOut]:
    results = []
    for schedule in active_schedules(db):
        events = [
            raw
            for raw in schedule.events or []
            if ScheduledEvent.from_payload(raw).teacher_id == teacher_id
        ]
        if events:
            payload = schedule_payload(schedule)
            payload["events"] = events
            results.append(ScheduleOut.model_validate(payload))
    return results


@router.get("/check-conflicts/{course_id}/{year_level}/{semester}", response_model=list[ScheduleOut])
def conflict_context(
    course_id: str,
    year_level: str,
    semester: str,
    excludeScheduleId: str | None = None,
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    # Teacher and room clashes cross courses, so every other active schedule is returned.
    logger.debug("Conflict context for %s Y%s S%s", course_id, year_level, semester)
    return [_to_out(item) for item in active_schedules(db, excludeScheduleId)]


@router.get("/recyclable", response_model=list[RecyclableScheduleOut])
def list_recyclable_schedules(db: Session = Depends(get_db)) -> list[RecyclableScheduleOut]:
    schedules = sorted(
        active_schedules(db),
        key=lambda item: (item.academic_year, item.semester),
        reverse=True,
    )
    return [
        RecyclableScheduleOut(
            id=item.id,
            name=item.name,
            academicYear=item.academic_year,
            semester=item.semester,
            yearLevel=item.year_level,
            courseId=item.course_id,
            courseCode=item.course_abbreviation,
            subjectCount=len(item.events or []),
        )
        for item in schedules
    ]


@router.get("/{schedule_id}/detailed", response_model=ScheduleDetailOut)
def get_schedule_detailed(schedule_id: str, db: Session = Depends(get_db)) -> ScheduleDetailOut:
    """The schedule plus the offerings of its term, whose teachers a recycle may remap."""
    schedule = _get_active_schedule(db, schedule_id)
    rows = find_offerings(
        db,
        course_id=schedule.course_id,
        year_level=schedule.year_level,
        semester=schedule.semester,
        academic_year=schedule.academic_year,
    )
    subjects = subjects_by_id(db, [row.subject_id for row in rows])
    payload = schedule_payload(schedule)
    payload["subjects"] = [
        OfferingOut.model_validate(offering_payload(row, subjects.get(row.subject_id))) for row in rows
    ]
    return ScheduleDetailOut.model_validate(payload)


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(schedule_id: str, db: Session = Depends(get_db)) -> ScheduleOut:
    return _to_out(_get_active_schedule(db, schedule_id))


@router.post("/", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(payload: ScheduleCreate, db: Session = Depends(get_db)) -> ScheduleOut:
    course = _get_course(db, payload.courseId)
    context = ScheduleContext(payload.courseId, payload.yearLevel, payload.semester, payload.academicYear)
    events = _prepare_events(db, [item.to_event() for item in payload.events], context)

    schedule = Schedule(
        name=payload.name,
        academic_year=payload.academicYear,
        course_id=course.id,
        course_name=course.name,
        course_abbreviation=course.abbreviation,
        year_level=payload.yearLevel,
        semester=payload.semester,
        events=events,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info("Created schedule %s (%s) with %d event(s)", schedule.id, schedule.name, len(events))
    return _to_out(schedule)


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(schedule_id: str, payload: ScheduleUpdate, db: Session = Depends(get_db)) -> ScheduleOut:
    schedule = _get_active_schedule(db, schedule_id)
    data = payload.model_dump(exclude_unset=True)

    course_id = data.get("courseId") or schedule.course_id
    course = _get_course(db, course_id)
    context = ScheduleContext(
        course_id,
        data.get("yearLevel") or schedule.year_level,
        data.get("semester") or schedule.semester,
        data.get("academicYear") or schedule.academic_year,
    )
    if payload.events is not None:
        raw_events = [item.to_event() for item in payload.events]
    else:
        raw_events = [ScheduledEvent.from_payload(item) for item in schedule.events or []]
    events = _prepare_events(db, raw_events, context, exclude_id=schedule.id)

    schedule.name = data.get("name") or schedule.name
    schedule.academic_year = context.academic_year
    schedule.course_id = course.id
    schedule.course_name = course.name
    schedule.course_abbreviation = course.abbreviation
    schedule.year_level = context.year_level
    schedule.semester = context.semester
    schedule.events = events
    db.commit()
    db.refresh(schedule)
    logger.info("Updated schedule %s with %d event(s)", schedule.id, len(events))
    return _to_out(schedule)


@router.delete("/{schedule_id}")
def delete_schedule(schedule_id: str, db: Session = Depends(get_db)) -> dict:
    schedule = _get_active_schedule(db, schedule_id)
    schedule.is_active = False
    db.commit()
    logger.info("Deactivated schedule %s", schedule_id)
    return {"success": True, "message": "Schedule deleted"}


@router.post("/placement-check", response_model=PlacementCheckResponse)
def placement_check(payload: PlacementCheckRequest, db: Session = Depends(get_db)) -> PlacementCheckResponse:
    """Run the editor's placement pipeline against a draft grid without persisting anything."""
    context = ScheduleContext(payload.courseId, payload.yearLevel, payload.semester, payload.academicYear)
    offerings = context_offerings(db, payload.courseId, payload.yearLevel, payload.semester, payload.academicYear)
    existing = [
        ExistingSchedule.from_payload(schedule_payload(item))
        for item in active_schedules(db, payload.excludeScheduleId)
    ]
    index = OfferingIndex(offerings)
    hydration = events_to_grid([item.model_dump() for item in payload.events], offerings=index)
    editor = TimetableEditor(context, index, existing, store=hydration.store)

    editing = None
    if payload.editing is not None:
        anchored = editor.event_at(payload.editing.day, payload.editing.startTime)
        if anchored is not None and anchored.start_time == payload.editing.startTime:
            editing = anchored

    candidate = payload.candidate
    form = EventForm(
        subject_id=candidate.subjectId,
        end_time=candidate.endTime,
        session_type=candidate.sessionType,
        teacher_id=candidate.teacherId,
        room=candidate.room,
    )
    offering = editor.offerings.resolve(candidate.subjectId)
    try:
        editor.confirm(candidate.day, candidate.startTime, form, editing)
    except PlacementError as exc:
        hours = None
        if offering is not None and editor.grid.slot_count(candidate.startTime, candidate.endTime) > 0:
            hours = editor.hours.status(
                offering.subject,
                candidate.sessionType,
                editor.grid.hours_between(candidate.startTime, candidate.endTime),
                replacing=editing,
            ).to_dict()
        conflicts = [conflict.to_dict() for conflict in exc.conflicts] if isinstance(exc, ConflictError) else []
        return PlacementCheckResponse(
            ok=False,
            error=type(exc).__name__,
            message=exc.message,
            conflicts=conflicts,
            hours=hours,
        )

    hours = editor.hours.status(offering.subject, candidate.sessionType).to_dict()
    return PlacementCheckResponse(ok=True, hours=hours)


@router.post("/recycle", response_model=RecycleResult, status_code=status.HTTP_201_CREATED)
def recycle_schedule(payload: RecycleRequest, db: Session = Depends(get_db)) -> RecycleResult:
    """Copy a schedule and its term's offerings into another academic year and semester.

    Teacher mappings replace assignments on the copied offerings and on the
    copied events taught by the replaced teacher.
    """
    source = _get_active_schedule(db, payload.sourceScheduleId)
    duplicate = db.execute(
        select(Schedule).where(
            Schedule.is_active.is_(True),
            Schedule.course_id == source.course_id,
            Schedule.year_level == source.year_level,
            Schedule.academic_year == payload.targetAcademicYear,
            Schedule.semester == payload.targetSemester,
        )
    ).scalars().first()
    if duplicate is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A schedule for this course, year level and semester already exists",
        )
    course = _get_course(db, source.course_id)

    source_offerings = find_offerings(
        db,
        course_id=source.course_id,
        year_level=source.year_level,
        semester=source.semester,
        academic_year=source.academic_year,
    )
    replacements: dict[tuple[str, str], AssignedTeacher] = {}
    teachers_updated = 0
    copies: list[SubjectOffering] = []
    for offering in source_offerings:
        teachers = [dict(item) for item in offering.assigned_teachers or []]
        for mapping in payload.teacherMappings:
            if mapping.offeringId != offering.id or mapping.assignmentIndex >= len(teachers):
                continue
            previous = normalize_id(teachers[mapping.assignmentIndex].get("teacherId"))
            teachers[mapping.assignmentIndex] = {
                "teacherId": mapping.newTeacherId,
                "teacherName": mapping.newTeacherName,
                "type": mapping.assignmentType,
            }
            if previous:
                replacements[(offering.subject_id, previous)] = AssignedTeacher(
                    mapping.newTeacherId, mapping.newTeacherName
                )
            teachers_updated += 1

        course_ids = list(offering.course_ids or [])
        existing = overlapping_offering(
            db,
            subject_id=offering.subject_id,
            course_ids=course_ids,
            year_level=offering.year_level,
            semester=payload.targetSemester,
            academic_year=payload.targetAcademicYear,
        )
        if existing is not None:
            logger.info("Offering %s already exists in %s; not copied", existing.id, payload.targetAcademicYear)
            continue
        copies.append(
            SubjectOffering(
                subject_id=offering.subject_id,
                course_ids=course_ids,
                year_level=offering.year_level,
                semester=payload.targetSemester,
                academic_year=payload.targetAcademicYear,
                assigned_teachers=teachers,
                preferred_rooms=list(offering.preferred_rooms or []),
                capacity=offering.capacity,
                notes=offering.notes,
            )
        )

    events = []
    for raw in source.events or []:
        event = ScheduledEvent.from_payload(raw)
        replacement = replacements.get((event.subject_id, event.teacher_id or ""))
        events.append(event.with_changes(assigned_teacher=replacement) if replacement else event)
    context = ScheduleContext(source.course_id, source.year_level, payload.targetSemester, payload.targetAcademicYear)
    prepared = _prepare_events(db, events, context)

    schedule = Schedule(
        name=f"{course.abbreviation} Year {source.year_level} - {payload.targetAcademicYear} "
        f"Semester {payload.targetSemester}",
        academic_year=payload.targetAcademicYear,
        course_id=course.id,
        course_name=course.name,
        course_abbreviation=course.abbreviation,
        year_level=source.year_level,
        semester=payload.targetSemester,
        events=prepared,
    )
    db.add(schedule)
    db.add_all(copies)
    db.commit()
    db.refresh(schedule)
    logger.info(
        "Recycled schedule %s into %s (%d offering(s), %d teacher change(s))",
        source.id,
        schedule.id,
        len(copies),
        teachers_updated,
    )
    return RecycleResult(
        success=True,
        message="Schedule recycled successfully",
        newScheduleId=schedule.id,
        subjectsCopied=len(copies),
        teachersUpdated=teachers_updated,
    )
