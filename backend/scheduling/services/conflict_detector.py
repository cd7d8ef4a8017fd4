from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from scheduling.core.exceptions import ExternalConflictError, InternalConflictError
from scheduling.services.events import ScheduledEvent, normalize_id
from scheduling.services.time_grid import parse_clock

if TYPE_CHECKING:
    from scheduling.services.placement_store import EventPlacementStore

logger = logging.getLogger(__name__)


class ConflictKind(str, Enum):
    student = "STUDENT"
    teacher = "TEACHER"
    room = "ROOM"
    internal = "INTERNAL"


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    subject: str
    day: str
    start_time: str
    end_time: str
    session_type: str
    message: str
    schedule_name: str = ""
    course_info: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "scheduleName": self.schedule_name,
            "courseInfo": self.course_info,
            "day": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "subject": self.subject,
            "sessionType": self.session_type,
            "message": self.message,
        }

    @classmethod
    def internal(cls, event: ScheduledEvent) -> Conflict:
        return cls(
            kind=ConflictKind.internal,
            subject=event.label,
            day=event.day,
            start_time=event.start_time,
            end_time=event.end_time,
            session_type=event.session_type,
            message=(
                f"Overlaps {event.label} ({event.session_type.upper()}) "
                f"on {event.day} {event.start_time}-{event.end_time}"
            ),
        )


@dataclass(frozen=True)
class ScheduleContext:
    course_id: str
    year_level: str
    semester: str
    academic_year: str | None = None

    @property
    def cohort(self) -> tuple[str, str, str]:
        return str(self.course_id), str(self.year_level), str(self.semester)


@dataclass(frozen=True)
class ExistingSchedule:
    schedule_id: str
    name: str
    course_id: str
    year_level: str
    semester: str
    academic_year: str | None = None
    course_abbreviation: str = ""
    events: tuple[ScheduledEvent, ...] = ()

    @property
    def cohort(self) -> tuple[str, str, str]:
        return str(self.course_id), str(self.year_level), str(self.semester)

    @property
    def course_info(self) -> str:
        return f"{self.course_abbreviation or 'N/A'} Y{self.year_level} S{self.semester}"

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> ExistingSchedule:
        course = raw.get("courseId")
        abbreviation = str(raw.get("courseAbbreviation") or "")
        if isinstance(course, Mapping):
            abbreviation = abbreviation or str(course.get("abbreviation") or "")
        return cls(
            schedule_id=normalize_id(raw.get("id", raw.get("_id"))) or "",
            name=str(raw.get("name") or ""),
            course_id=normalize_id(course) or "",
            year_level=str(raw.get("yearLevel") or ""),
            semester=str(raw.get("semester") or ""),
            academic_year=raw.get("academicYear"),
            course_abbreviation=abbreviation,
            events=tuple(ScheduledEvent.from_payload(item) for item in raw.get("events") or []),
        )


@dataclass(frozen=True)
class Candidate:
    day: str
    start_time: str
    end_time: str
    subject_id: str = ""
    teacher_id: str | None = None
    room: str = ""
    session_type: str = "lecture"

    @classmethod
    def from_event(cls, event: ScheduledEvent) -> Candidate:
        return cls(
            day=event.day,
            start_time=event.start_time,
            end_time=event.end_time,
            subject_id=event.subject_id,
            teacher_id=event.teacher_id,
            room=event.room,
            session_type=event.session_type,
        )


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap test; intervals that only touch do not overlap."""
    return a_start < b_end and b_start < a_end


def _minutes(value: str | None) -> int | None:
    try:
        return parse_clock(value or "")
    except ValueError:
        return None


def _same_room(left: str | None, right: str | None) -> bool:
    normalized = (left or "").strip().lower()
    return bool(normalized) and normalized == (right or "").strip().lower()


def classify_overlap(
    candidate: Candidate,
    context: ScheduleContext,
    schedule: ExistingSchedule,
    event: ScheduledEvent,
) -> tuple[ConflictKind, str] | None:
    """First matching category wins: STUDENT, then TEACHER, then ROOM."""
    if schedule.cohort == context.cohort:
        return ConflictKind.student, "Students can't attend two classes at once"
    if candidate.teacher_id and event.teacher_id and candidate.teacher_id == event.teacher_id:
        teacher_name = event.assigned_teacher.teacher_name if event.assigned_teacher else ""
        return ConflictKind.teacher, f"{teacher_name or 'Teacher'} is already teaching another class"
    if _same_room(candidate.room, event.room):
        return ConflictKind.room, f'Room "{candidate.room.strip()}" is already occupied'
    return None


class ConflictDetector:
    def __init__(self, context: ScheduleContext, existing_schedules: Iterable[ExistingSchedule] = ()) -> None:
        self.context = context
        self.existing_schedules = list(existing_schedules)

    def _in_scope(self, schedule: ExistingSchedule) -> bool:
        # Schedules from another academic year never share a timeslot with this one.
        if self.context.academic_year and schedule.academic_year:
            return schedule.academic_year == self.context.academic_year
        return True

    def external_conflicts(self, candidate: Candidate) -> list[Conflict]:
        new_start = _minutes(candidate.start_time)
        new_end = _minutes(candidate.end_time)
        if new_start is None or new_end is None:
            return []

        conflicts: list[Conflict] = []
        for schedule in self.existing_schedules:
            if not self._in_scope(schedule):
                continue
            for event in schedule.events:
                if event.day != candidate.day:
                    continue
                existing_start = _minutes(event.start_time)
                existing_end = _minutes(event.end_time)
                if existing_start is None or existing_end is None:
                    logger.debug("Ignoring malformed event in schedule %s: %r", schedule.name, event)
                    continue
                if not intervals_overlap(new_start, new_end, existing_start, existing_end):
                    continue
                classified = classify_overlap(candidate, self.context, schedule, event)
                if classified is None:
                    continue
                kind, message = classified
                conflicts.append(
                    Conflict(
                        kind=kind,
                        subject=event.label,
                        day=event.day,
                        start_time=event.start_time,
                        end_time=event.end_time,
                        session_type=event.session_type,
                        message=message,
                        schedule_name=schedule.name,
                        course_info=schedule.course_info,
                    )
                )
        return conflicts

    def internal_conflict(
        self,
        store: EventPlacementStore,
        candidate: Candidate,
        editing: ScheduledEvent | None = None,
    ) -> Conflict | None:
        blockers = store.blocking_events(candidate.day, candidate.start_time, candidate.end_time, editing)
        if not blockers:
            return None
        return Conflict.internal(blockers[0])

    def check(
        self,
        store: EventPlacementStore,
        candidate: Candidate,
        editing: ScheduledEvent | None = None,
    ) -> None:
        """Run the external phase, then the internal phase; raise on the first phase that fails."""
        external = self.external_conflicts(candidate)
        if external:
            logger.info(
                "Rejected %s %s-%s: %d external conflict(s)",
                candidate.day,
                candidate.start_time,
                candidate.end_time,
                len(external),
            )
            raise ExternalConflictError(external)
        internal = self.internal_conflict(store, candidate, editing)
        if internal is not None:
            logger.info("Rejected %s %s-%s: overlaps %s", candidate.day, candidate.start_time, candidate.end_time, internal.subject)
            raise InternalConflictError([internal])


def find_time_conflicts(events: list[ScheduledEvent]) -> list[Conflict]:
    """Pairwise overlaps between events of a single schedule document."""
    conflicts: list[Conflict] = []
    for i, first in enumerate(events):
        first_start, first_end = _minutes(first.start_time), _minutes(first.end_time)
        if first_start is None or first_end is None:
            continue
        for second in events[i + 1:]:
            if second.day != first.day:
                continue
            second_start, second_end = _minutes(second.start_time), _minutes(second.end_time)
            if second_start is None or second_end is None:
                continue
            if intervals_overlap(first_start, first_end, second_start, second_end):
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.internal,
                        subject=second.label,
                        day=second.day,
                        start_time=second.start_time,
                        end_time=second.end_time,
                        session_type=second.session_type,
                        message=(
                            f"Time overlap detected: {first.day} {first.start_time}-{first.end_time} "
                            f"and {second.day} {second.start_time}-{second.end_time}"
                        ),
                    )
                )
    return conflicts


def find_conflicts_with_existing(
    events: Iterable[ScheduledEvent],
    schedules: Iterable[ExistingSchedule],
    context: ScheduleContext,
) -> list[Conflict]:
    detector = ConflictDetector(context, schedules)
    conflicts: list[Conflict] = []
    for event in events:
        conflicts.extend(detector.external_conflicts(Candidate.from_event(event)))
    return conflicts


def find_room_bookings(
    room: str,
    day: str,
    start_time: str,
    end_time: str,
    schedules: Iterable[ExistingSchedule],
) -> list[tuple[ExistingSchedule, ScheduledEvent]]:
    """Events of ``schedules`` that hold ``room`` during the given window."""
    start, end = _minutes(start_time), _minutes(end_time)
    if start is None or end is None:
        return []
    bookings = []
    for schedule in schedules:
        for event in schedule.events:
            if event.day != day or not _same_room(room, event.room):
                continue
            event_start, event_end = _minutes(event.start_time), _minutes(event.end_time)
            if event_start is None or event_end is None:
                continue
            if intervals_overlap(start, end, event_start, event_end):
                bookings.append((schedule, event))
    return bookings
