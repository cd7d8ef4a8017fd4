from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from scheduling.core.config import get_settings
from scheduling.core.exceptions import (
    DataIntegrityWarning,
    InvalidSessionTypeError,
    InvalidTimeRangeError,
    PlacementError,
    ScheduleValidationError,
)
from scheduling.models.schedule import SessionType
from scheduling.services.conflict_detector import Candidate, ConflictDetector, ExistingSchedule, ScheduleContext
from scheduling.services.debounce import DebouncedTask
from scheduling.services.events import AssignedTeacher, ScheduledEvent
from scheduling.services.hours import HoursAccumulator, HoursStatus
from scheduling.services.offerings import Offering, OfferingIndex, PreferredRoom, TeacherAssignment
from scheduling.services.placement_store import EventPlacementStore
from scheduling.services.serialization import events_to_grid, grid_to_events
from scheduling.services.time_grid import TimeGrid, TimeSlot

if TYPE_CHECKING:
    from scheduling.services.api_client import SchedulingApiClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventForm:
    """What the event dialog submits for one cell."""

    subject_id: str
    end_time: str
    session_type: str = SessionType.lecture.value
    teacher_id: str | None = None
    room_index: int = 0
    room: str | None = None


class TimetableEditor:
    """One editing session over a single schedule document.

    ``confirm`` runs the full placement pipeline: time range, lab check,
    external conflicts, internal conflicts, hours, and only then mutates the
    store. A rejected placement leaves the store untouched.
    """

    def __init__(
        self,
        context: ScheduleContext,
        offerings: Iterable[Offering] = (),
        existing_schedules: Iterable[ExistingSchedule] = (),
        *,
        grid: TimeGrid | None = None,
        store: EventPlacementStore | None = None,
        schedule_id: str | None = None,
        days: Iterable[str] | None = None,
    ) -> None:
        self.context = context
        self.days = list(days) if days is not None else list(get_settings().editor_days)
        self.offerings = OfferingIndex(offerings)
        self.detector = ConflictDetector(context, existing_schedules)
        self.store = store if store is not None else EventPlacementStore(grid)
        self.hours = HoursAccumulator(self.store)
        self.schedule_id = schedule_id
        self.warnings: list[DataIntegrityWarning] = []

    @property
    def grid(self) -> TimeGrid:
        return self.store.grid

    def event_at(self, day: str, start: str) -> ScheduledEvent | None:
        return self.store.owner_of(day, start)

    def end_options(self, start: str) -> list[TimeSlot]:
        return self.grid.end_options(start)

    def _offering_for(self, subject_id: str) -> Offering:
        offering = self.offerings.resolve(subject_id)
        if offering is None:
            raise PlacementError(f"Unknown subject {subject_id}", details={"subjectId": subject_id})
        return offering

    def build_event(self, day: str, start: str, form: EventForm) -> ScheduledEvent:
        offering = self._offering_for(form.subject_id)
        teacher = None
        if form.teacher_id:
            assignment = offering.teacher(form.teacher_id)
            if assignment is None:
                raise PlacementError(
                    f"Teacher {form.teacher_id} is not assigned to {offering.subject.label}",
                    details={"teacherId": form.teacher_id, "subjectId": offering.subject.id},
                )
            if not assignment.covers(form.session_type):
                raise PlacementError(
                    f"{assignment.teacher_name or form.teacher_id} is assigned to {offering.subject.label} "
                    f"for {assignment.type} sessions only",
                    details={"teacherId": form.teacher_id, "sessionType": form.session_type},
                )
            teacher = AssignedTeacher(assignment.teacher_id, assignment.teacher_name)

        if form.room is not None:
            room = form.room.strip()
        else:
            preferred = offering.room_at(form.room_index)
            room = preferred.room_name if preferred else ""

        return ScheduledEvent(
            day=day,
            start_time=start,
            end_time=form.end_time,
            subject_id=offering.subject.id,
            subject_name=offering.subject.name,
            subject_code=offering.subject.code,
            session_type=form.session_type,
            room=room,
            assigned_teacher=teacher,
        )

    def confirm(
        self,
        day: str,
        start: str,
        form: EventForm,
        editing: ScheduledEvent | None = None,
    ) -> ScheduledEvent:
        """Validate and place one event; ``editing`` is the snapshot being replaced."""
        if day not in self.days:
            raise PlacementError(f"{day} is not a scheduling day", details={"day": day, "days": self.days})
        if self.grid.index_of(form.end_time) <= self.grid.index_of(start):
            raise InvalidTimeRangeError(start, form.end_time)

        offering = self._offering_for(form.subject_id)
        if form.session_type == SessionType.lab.value and not offering.subject.has_lab:
            raise InvalidSessionTypeError(offering.subject.name or offering.subject.label, form.session_type)

        event = self.build_event(day, start, form)
        self.detector.check(self.store, Candidate.from_event(event), editing)
        self.hours.ensure_within(
            offering.subject,
            event.session_type,
            self.grid.hours_between(event.start_time, event.end_time),
            replacing=editing,
        )
        self.store.place(event, editing)
        logger.info("Placed %s (%s) on %s %s-%s", event.label, event.session_type, day, start, event.end_time)
        return event

    def delete(self, day: str, start: str) -> ScheduledEvent | None:
        removed = self.store.remove(day, start)
        if removed is not None:
            logger.info("Removed %s from %s %s", removed.label, day, start)
        return removed

    def available_offerings(self, editing: ScheduledEvent | None = None) -> list[Offering]:
        """Active offerings that still need hours; the one being edited is always kept."""
        available = []
        for offering in self.offerings:
            if not offering.is_active:
                continue
            if editing is not None and offering.subject.id == editing.subject_id:
                available.append(offering)
            elif not self.hours.is_fully_scheduled(offering.subject):
                available.append(offering)
        return available

    def assigned_teachers(self, subject_id: str, session_type: str | None = None) -> list[TeacherAssignment]:
        offering = self.offerings.resolve(subject_id)
        if offering is None:
            return []
        return [item for item in offering.assigned_teachers if session_type is None or item.covers(session_type)]

    def preferred_rooms(self, subject_id: str) -> list[PreferredRoom]:
        offering = self.offerings.resolve(subject_id)
        return list(offering.preferred_rooms) if offering is not None else []

    def use_existing_schedules(self, existing: Iterable[ExistingSchedule]) -> None:
        self.detector = ConflictDetector(self.context, existing)

    def conflict_watcher(
        self,
        client: SchedulingApiClient,
        delay: float | None = None,
    ) -> DebouncedTask[list[ExistingSchedule]]:
        """Debounced re-fetch of the other schedules; arm it after each context change."""
        return DebouncedTask(
            lambda: client.fetch_conflict_context(self.context, exclude_schedule_id=self.schedule_id),
            delay,
            on_result=self.use_existing_schedules,
        )

    def hours_summary(self) -> dict[str, dict[str, HoursStatus]]:
        return {offering.subject.id: self.hours.progress(offering.subject) for offering in self.offerings}

    def build_payload(self, name: str) -> dict:
        events, warnings = grid_to_events(self.store, self.offerings)
        self.warnings.extend(warnings)
        if not events:
            raise ScheduleValidationError("Schedule has no events to save")
        return {
            "name": name,
            "academicYear": self.context.academic_year,
            "courseId": self.context.course_id,
            "yearLevel": self.context.year_level,
            "semester": self.context.semester,
            "events": [event.to_payload() for event in events],
        }

    async def save(self, client: SchedulingApiClient, name: str, schedule_id: str | None = None) -> dict:
        """Persist the whole grid; on failure the store is left as it was."""
        payload = self.build_payload(name)
        target = schedule_id or self.schedule_id
        saved = await client.save_schedule(payload, target)
        self.schedule_id = str(saved.get("id") or saved.get("_id") or target or "") or None
        logger.info("Saved schedule %s with %d event(s)", self.schedule_id, len(payload["events"]))
        return saved

    @classmethod
    async def load(
        cls,
        client: SchedulingApiClient,
        context: ScheduleContext,
        schedule_id: str | None = None,
        *,
        grid: TimeGrid | None = None,
    ) -> TimetableEditor:
        offerings = await client.fetch_offerings(context)
        existing = await client.fetch_conflict_context(context, exclude_schedule_id=schedule_id)
        if schedule_id is None:
            return cls(context, offerings, existing, grid=grid)

        document = await client.fetch_schedule(schedule_id)
        hydration = events_to_grid(document.get("events") or [], grid, OfferingIndex(offerings))
        editor = cls(context, offerings, existing, store=hydration.store, schedule_id=schedule_id)
        editor.warnings.extend(hydration.warnings)
        return editor
