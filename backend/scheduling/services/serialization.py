from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from scheduling.core.exceptions import DataIntegrityWarning, InternalConflictError
from scheduling.services.events import ScheduledEvent, normalize_id
from scheduling.services.offerings import OfferingIndex
from scheduling.services.placement_store import EventPlacementStore
from scheduling.services.time_grid import TimeGrid

logger = logging.getLogger(__name__)


def normalize_subject_id(value: Any) -> str | None:
    """Persisted events may carry ``subjectId`` as a populated subject; always reduce it to the id."""
    return normalize_id(value)


@dataclass
class GridHydration:
    store: EventPlacementStore
    warnings: list[DataIntegrityWarning] = field(default_factory=list)


def _warn(warnings: list[DataIntegrityWarning], reason: str, raw: Mapping[str, Any]) -> None:
    warning = DataIntegrityWarning(reason, dict(raw))
    warnings.append(warning)
    logger.warning("%s: %r", reason, warning.event)


def events_to_grid(
    events: Iterable[Mapping[str, Any]],
    grid: TimeGrid | None = None,
    offerings: OfferingIndex | None = None,
) -> GridHydration:
    """Hydrate a placement store from persisted events, skipping the ones that cannot be placed.

    With ``offerings`` given, events that reference an offering id are keyed by
    the offering's catalog subject id so hours accounting sees them.
    """
    store = EventPlacementStore(grid)
    hydration = GridHydration(store=store)
    for raw in events:
        subject_id = normalize_subject_id(raw.get("subjectId"))
        if subject_id is None:
            _warn(hydration.warnings, "Event has no subject id", raw)
            continue
        offering = offerings.get(subject_id) if offerings is not None else None
        if offering is not None:
            subject_id = offering.subject.id
        start = store.grid.find(raw.get("startTime"))
        end = store.grid.find(raw.get("endTime"))
        if start is None or end is None:
            _warn(hydration.warnings, "Event time does not match a grid slot", raw)
            continue
        if end <= start:
            _warn(hydration.warnings, "Event ends before it starts", raw)
            continue
        if not raw.get("day"):
            _warn(hydration.warnings, "Event has no day", raw)
            continue

        event = ScheduledEvent.from_payload(raw, subject_id=subject_id)
        if offering is not None:
            event = event.with_changes(
                subject_code=event.subject_code or offering.subject.code,
                subject_name=event.subject_name or offering.subject.name,
            )
        try:
            store.place(event)
        except InternalConflictError as exc:
            _warn(hydration.warnings, f"Event overlaps {exc.conflicts[0].subject}", raw)
    return hydration


def grid_to_events(
    store: EventPlacementStore,
    offerings: OfferingIndex | None = None,
) -> tuple[list[ScheduledEvent], list[DataIntegrityWarning]]:
    """Flatten the store into persistable events keyed by catalog subject id."""
    seen: set[tuple[str, str, str, str]] = set()
    events: list[ScheduledEvent] = []
    warnings: list[DataIntegrityWarning] = []

    for event in store.events():
        offering = offerings.resolve(event.subject_id) if offerings is not None else None
        subject_id = offering.subject.id if offering is not None else event.subject_id
        if not subject_id:
            _warn(warnings, "Dropping event without a resolvable subject", event.to_payload())
            continue

        key = (event.day, event.start_time, subject_id, event.session_type)
        if key in seen:
            logger.debug("Dropping duplicate event %s", key)
            continue
        seen.add(key)

        if offering is not None:
            event = event.with_changes(
                subject_id=subject_id,
                subject_code=event.subject_code or offering.subject.code,
                subject_name=event.subject_name or offering.subject.name,
            )
        events.append(event)
    return events, warnings
