from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from scheduling.core.exceptions import HoursExceededError
from scheduling.models.schedule import SessionType
from scheduling.services.events import ScheduledEvent
from scheduling.services.offerings import SubjectRef
from scheduling.services.placement_store import EventPlacementStore
from scheduling.services.time_grid import parse_clock

logger = logging.getLogger(__name__)

LAB_HOURS_PER_UNIT = 3


def required_hours(subject: SubjectRef, session_type: str) -> float:
    if session_type == SessionType.lab.value:
        return subject.lab_units * LAB_HOURS_PER_UNIT
    return subject.lecture_units


class HoursState(str, Enum):
    under = "under"
    complete = "complete"
    over = "over"


@dataclass(frozen=True)
class HoursStatus:
    required: float
    current: float
    projected: float
    status: HoursState

    @property
    def remaining(self) -> float:
        return max(self.required - self.projected, 0.0)

    @property
    def message(self) -> str:
        if self.status == HoursState.over:
            return f"Exceeds required hours by {self.projected - self.required:g}h"
        if self.status == HoursState.complete:
            return "Required hours fully scheduled"
        return f"{self.remaining:g}h remaining of {self.required:g}h"

    def to_dict(self) -> dict:
        return {
            "required": self.required,
            "current": self.current,
            "projected": self.projected,
            "status": self.status.value,
        }


def _classify(required: float, projected: float) -> HoursState:
    if projected > required:
        return HoursState.over
    if projected == required:
        return HoursState.complete
    return HoursState.under


class HoursAccumulator:
    """Scheduled hours per ``(subject_id, session_type)``, read from the store on every call."""

    def __init__(self, store: EventPlacementStore) -> None:
        self.store = store

    def hours_for(self, subject_id: str, session_type: str) -> float:
        grid = self.store.grid
        return sum(
            grid.hours_between(event.start_time, event.end_time)
            for event in self.store.events()
            if event.subject_id == subject_id and event.session_type == session_type
        )

    def status(
        self,
        subject: SubjectRef,
        session_type: str,
        added_hours: float = 0.0,
        replacing: ScheduledEvent | None = None,
    ) -> HoursStatus:
        """Project the hours after adding ``added_hours``.

        ``replacing`` is the pre-edit snapshot; its hours are taken out of the
        current total when it counts towards the same subject and session type.
        """
        current = self.hours_for(subject.id, session_type)
        if (
            replacing is not None
            and replacing.subject_id == subject.id
            and replacing.session_type == session_type
            and self.store.is_placed(replacing)
        ):
            current -= self.store.grid.hours_between(replacing.start_time, replacing.end_time)
        required = required_hours(subject, session_type)
        projected = current + added_hours
        return HoursStatus(required=required, current=current, projected=projected, status=_classify(required, projected))

    def ensure_within(
        self,
        subject: SubjectRef,
        session_type: str,
        added_hours: float,
        replacing: ScheduledEvent | None = None,
    ) -> HoursStatus:
        result = self.status(subject, session_type, added_hours, replacing)
        if result.projected > result.required:
            logger.info(
                "Rejected %s %s: %gh projected against %gh required",
                subject.label,
                session_type,
                result.projected,
                result.required,
            )
            raise HoursExceededError(subject.label, session_type, result.required, result.projected)
        return result

    def progress(self, subject: SubjectRef) -> dict[str, HoursStatus]:
        session_types = [SessionType.lecture.value]
        if subject.has_lab or subject.lab_units > 0:
            session_types.append(SessionType.lab.value)
        return {session_type: self.status(subject, session_type) for session_type in session_types}

    def is_fully_scheduled(self, subject: SubjectRef) -> bool:
        return all(
            item.status == HoursState.complete
            for item in self.progress(subject).values()
            if item.required > 0
        )


@dataclass(frozen=True)
class HoursViolation:
    subject_code: str
    subject_name: str
    session_type: str
    scheduled_hours: float
    required_hours: float

    @property
    def excess_hours(self) -> float:
        return self.scheduled_hours - self.required_hours

    def to_dict(self) -> dict:
        return {
            "subjectCode": self.subject_code,
            "subjectName": self.subject_name,
            "sessionType": self.session_type,
            "scheduledHours": self.scheduled_hours,
            "requiredHours": self.required_hours,
            "excessHours": self.excess_hours,
        }

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> HoursViolation:
        return cls(
            subject_code=str(raw.get("subjectCode") or ""),
            subject_name=str(raw.get("subjectName") or ""),
            session_type=str(raw.get("sessionType") or SessionType.lecture.value),
            scheduled_hours=float(raw.get("scheduledHours") or 0),
            required_hours=float(raw.get("requiredHours") or 0),
        )


def event_hours(event: ScheduledEvent) -> float:
    return (parse_clock(event.end_time) - parse_clock(event.start_time)) / 60


def validate_schedule_hours(
    events: Iterable[ScheduledEvent],
    subjects: Mapping[str, SubjectRef],
) -> list[HoursViolation]:
    """Compare a whole schedule document against each subject's required hours."""
    totals: dict[tuple[str, str], float] = {}
    for event in events:
        key = (event.subject_id, event.session_type)
        totals[key] = totals.get(key, 0.0) + event_hours(event)

    violations = []
    for (subject_id, session_type), scheduled in totals.items():
        subject = subjects.get(subject_id)
        if subject is None:
            logger.warning("Hours check skipped for unknown subject %s", subject_id)
            continue
        required = required_hours(subject, session_type)
        if scheduled > required:
            violations.append(
                HoursViolation(
                    subject_code=subject.code,
                    subject_name=subject.name,
                    session_type=session_type,
                    scheduled_hours=scheduled,
                    required_hours=required,
                )
            )
    return violations
