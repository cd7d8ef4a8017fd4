from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from scheduling.models.schedule import SessionType

DAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def normalize_id(value: Any) -> str | None:
    """Return a plain scalar id for either a raw id or a populated record."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        nested = value.get("_id", value.get("id"))
        return normalize_id(nested)
    text = str(value).strip()
    return text or None


def person_name(record: Mapping[str, Any], fallback: str = "") -> str:
    name = str(record.get("name") or "").strip()
    if name:
        return name
    joined = f"{record.get('firstName') or ''} {record.get('lastName') or ''}".strip()
    return joined or fallback


def normalize_session_type(value: Any) -> str:
    if isinstance(value, SessionType):
        return value.value
    text = str(value or "").strip().lower()
    return SessionType.lab.value if text == SessionType.lab.value else SessionType.lecture.value


@dataclass(frozen=True)
class AssignedTeacher:
    teacher_id: str
    teacher_name: str = ""

    def to_payload(self) -> dict:
        return {"teacherId": self.teacher_id, "teacherName": self.teacher_name}

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any] | None) -> AssignedTeacher | None:
        if not raw:
            return None
        teacher = raw.get("teacherId")
        name = str(raw.get("teacherName") or raw.get("name") or "")
        if isinstance(teacher, Mapping):
            name = person_name(teacher, fallback=name)
        teacher_id = normalize_id(teacher)
        if teacher_id is None:
            return None
        return cls(teacher_id=teacher_id, teacher_name=name)


@dataclass(frozen=True)
class ScheduledEvent:
    day: str
    start_time: str
    end_time: str
    subject_id: str
    subject_name: str = ""
    subject_code: str = ""
    session_type: str = SessionType.lecture.value
    room: str = ""
    assigned_teacher: AssignedTeacher | None = None

    @property
    def teacher_id(self) -> str | None:
        return self.assigned_teacher.teacher_id if self.assigned_teacher else None

    @property
    def label(self) -> str:
        return self.subject_code or self.subject_name or "Unknown"

    @property
    def sort_key(self) -> tuple[int, str]:
        day_rank = DAY_ORDER.index(self.day) if self.day in DAY_ORDER else len(DAY_ORDER)
        return day_rank, self.start_time

    def with_changes(self, **changes: Any) -> ScheduledEvent:
        return replace(self, **changes)

    def to_payload(self) -> dict:
        payload = {
            "day": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "subjectId": self.subject_id,
            "subjectName": self.subject_name,
            "subjectCode": self.subject_code,
            "sessionType": self.session_type,
            "room": self.room,
        }
        if self.assigned_teacher is not None:
            payload["assignedTeacher"] = self.assigned_teacher.to_payload()
        return payload

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any], *, subject_id: str | None = None) -> ScheduledEvent:
        subject = raw.get("subjectId")
        subject_name = str(raw.get("subjectName") or "")
        subject_code = str(raw.get("subjectCode") or "")
        if isinstance(subject, Mapping):
            subject_name = subject_name or str(subject.get("name") or "")
            subject_code = subject_code or str(subject.get("code") or "")
        return cls(
            day=str(raw.get("day") or ""),
            start_time=str(raw.get("startTime") or ""),
            end_time=str(raw.get("endTime") or ""),
            subject_id=subject_id if subject_id is not None else normalize_id(subject) or "",
            subject_name=subject_name,
            subject_code=subject_code,
            session_type=normalize_session_type(raw.get("sessionType")),
            room=str(raw.get("room") or ""),
            assigned_teacher=AssignedTeacher.from_payload(raw.get("assignedTeacher")),
        )
