from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from scheduling.services.events import normalize_id, person_name

logger = logging.getLogger(__name__)


def _first_present(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if raw.get(name) is not None:
            return raw[name]
    return None


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class SubjectRef:
    id: str
    code: str = ""
    name: str = ""
    lecture_units: float = 0.0
    lab_units: float = 0.0
    has_lab: bool = False

    @property
    def label(self) -> str:
        return self.code or self.name or "Unknown"

    @classmethod
    def from_record(cls, raw: Mapping[str, Any], subject_id: str) -> SubjectRef:
        lab_units = _as_number(_first_present(raw, "labUnits", "lab_units"))
        has_lab = _first_present(raw, "hasLab", "has_lab")
        return cls(
            id=subject_id,
            code=str(raw.get("code") or ""),
            name=str(raw.get("name") or ""),
            lecture_units=_as_number(_first_present(raw, "lectureUnits", "lecture_units", "lectureHours")),
            lab_units=lab_units,
            has_lab=bool(has_lab) if has_lab is not None else lab_units > 0,
        )


@dataclass(frozen=True)
class TeacherAssignment:
    teacher_id: str
    teacher_name: str = ""
    type: str = "both"

    def covers(self, session_type: str) -> bool:
        return self.type in ("both", session_type)


@dataclass(frozen=True)
class PreferredRoom:
    room_id: str
    room_name: str
    room_type: str = "classroom"
    capacity: int = 0


@dataclass(frozen=True)
class Offering:
    offering_id: str
    subject: SubjectRef
    assigned_teachers: tuple[TeacherAssignment, ...] = ()
    preferred_rooms: tuple[PreferredRoom, ...] = ()
    course_ids: tuple[str, ...] = ()
    year_level: str | None = None
    semester: str | None = None
    academic_year: str | None = None
    is_active: bool = True

    def teacher(self, teacher_id: str | None) -> TeacherAssignment | None:
        if teacher_id is None:
            return None
        return next((item for item in self.assigned_teachers if item.teacher_id == teacher_id), None)

    def room_at(self, index: int = 0) -> PreferredRoom | None:
        if not self.preferred_rooms:
            return None
        if 0 <= index < len(self.preferred_rooms):
            return self.preferred_rooms[index]
        return self.preferred_rooms[0]


def _normalize_teacher(raw: Any) -> TeacherAssignment | None:
    if not isinstance(raw, Mapping):
        return None
    teacher = raw.get("teacherId")
    name = str(raw.get("teacherName") or "")
    if isinstance(teacher, Mapping):
        name = person_name(teacher, fallback=name)
    teacher_id = normalize_id(teacher)
    if teacher_id is None:
        return None
    return TeacherAssignment(teacher_id=teacher_id, teacher_name=name or "Unknown", type=str(raw.get("type") or "both"))


def _normalize_room(raw: Any) -> PreferredRoom | None:
    if not raw:
        return None
    if isinstance(raw, str):
        return PreferredRoom(room_id="", room_name=raw)
    if not isinstance(raw, Mapping):
        return None
    return PreferredRoom(
        room_id=str(_first_present(raw, "roomId", "_id", "id") or ""),
        room_name=str(_first_present(raw, "roomName", "name") or ""),
        room_type=str(_first_present(raw, "roomType", "type") or "classroom"),
        capacity=int(_as_number(raw.get("capacity"))),
    )


def normalize_offering(
    raw: Mapping[str, Any],
    subjects_by_id: Mapping[str, Mapping[str, Any]] | None = None,
) -> Offering | None:
    """Collapse every offering/subject shape into one canonical ``Offering``.

    Accepted shapes: an offering with a nested ``subject`` record, an offering
    whose ``subjectId`` is either populated or a bare id (resolved through
    ``subjects_by_id`` when given), and a bare catalog subject, which is
    treated as its own offering.
    """
    offering_id = normalize_id(_first_present(raw, "id", "_id"))
    nested = raw.get("subject")
    subject_field = raw.get("subjectId")

    if isinstance(nested, Mapping):
        subject_id = normalize_id(nested) or normalize_id(subject_field)
        subject_record: Mapping[str, Any] = nested
    elif isinstance(subject_field, Mapping):
        subject_id = normalize_id(subject_field)
        subject_record = subject_field
    elif subject_field is not None:
        subject_id = normalize_id(subject_field)
        subject_record = (subjects_by_id or {}).get(subject_id or "", {})
    else:
        subject_id = offering_id
        subject_record = raw

    if offering_id is None or subject_id is None:
        logger.warning("Skipping offering without a resolvable subject: %r", dict(raw))
        return None

    teachers = tuple(item for item in map(_normalize_teacher, raw.get("assignedTeachers") or []) if item)
    rooms = tuple(item for item in map(_normalize_room, raw.get("preferredRooms") or []) if item)
    course_ids = raw.get("courseIds", raw.get("courseId")) or []
    if not isinstance(course_ids, list):
        course_ids = [course_ids]
    year_level = raw.get("yearLevel")
    return Offering(
        offering_id=offering_id,
        subject=SubjectRef.from_record(subject_record, subject_id),
        assigned_teachers=teachers,
        preferred_rooms=rooms,
        course_ids=tuple(cid for cid in (normalize_id(item) for item in course_ids) if cid),
        year_level=str(year_level) if year_level is not None else None,
        semester=raw.get("semester"),
        academic_year=raw.get("academicYear"),
        is_active=raw.get("isActive", True) is not False,
    )


def normalize_offerings(
    raw_items: Iterable[Mapping[str, Any]],
    subjects_by_id: Mapping[str, Mapping[str, Any]] | None = None,
) -> list[Offering]:
    offerings = []
    for raw in raw_items:
        offering = normalize_offering(raw, subjects_by_id)
        if offering is not None:
            offerings.append(offering)
    return offerings


class OfferingIndex:
    """Lookup of offerings by offering id or by catalog subject id."""

    def __init__(self, offerings: Iterable[Offering]) -> None:
        self.offerings = list(offerings)
        self._by_offering = {item.offering_id: item for item in self.offerings}
        self._by_subject: dict[str, Offering] = {}
        for item in self.offerings:
            self._by_subject.setdefault(item.subject.id, item)

    def __iter__(self):
        return iter(self.offerings)

    def __len__(self) -> int:
        return len(self.offerings)

    def get(self, offering_id: str) -> Offering | None:
        return self._by_offering.get(offering_id)

    def by_subject(self, subject_id: str) -> Offering | None:
        return self._by_subject.get(subject_id)

    def resolve(self, identifier: str | None) -> Offering | None:
        """Find the offering for either an offering id or a catalog subject id."""
        if not identifier:
            return None
        return self.get(identifier) or self.by_subject(identifier)
