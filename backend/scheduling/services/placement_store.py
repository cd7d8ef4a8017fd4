from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from scheduling.core.exceptions import InternalConflictError, InvalidTimeRangeError
from scheduling.services.conflict_detector import Conflict
from scheduling.services.events import ScheduledEvent
from scheduling.services.time_grid import TimeGrid, get_time_grid

logger = logging.getLogger(__name__)


class CellState(str, Enum):
    empty = "empty"
    occupied = "occupied"
    anchored = "anchored"


@dataclass(frozen=True)
class Cell:
    state: CellState
    event: ScheduledEvent | None = None

    @property
    def is_free(self) -> bool:
        return self.state == CellState.empty


EMPTY = Cell(CellState.empty)
OCCUPIED = Cell(CellState.occupied)


def anchored(event: ScheduledEvent) -> Cell:
    return Cell(CellState.anchored, event)


def cell_key(day: str, slot: str) -> str:
    return f"{day}-{slot}"


class EventPlacementStore:
    """Weekly grid keyed by ``"{day}-{slot}"``.

    Only the start slot of an event holds the event itself; every later slot it
    covers holds ``OCCUPIED`` so renderers can skip it and conflict checks can
    still see it.
    """

    def __init__(self, grid: TimeGrid | None = None) -> None:
        self.grid = grid or get_time_grid()
        self._cells: dict[str, Cell] = {}

    def __len__(self) -> int:
        return sum(1 for cell in self._cells.values() if cell.state == CellState.anchored)

    def __iter__(self) -> Iterator[ScheduledEvent]:
        return iter(self.events())

    def copy(self) -> EventPlacementStore:
        clone = EventPlacementStore(self.grid)
        clone._cells = dict(self._cells)
        return clone

    def cell_at(self, day: str, slot: str) -> Cell:
        return self._cells.get(cell_key(day, slot), EMPTY)

    def occupied_keys(self) -> set[str]:
        return set(self._cells)

    def events(self) -> list[ScheduledEvent]:
        anchors = [cell.event for cell in self._cells.values() if cell.state == CellState.anchored]
        return sorted(anchors, key=lambda event: event.sort_key)

    def owner_of(self, day: str, slot: str) -> ScheduledEvent | None:
        """Return the event covering ``(day, slot)``, walking back from span cells to their anchor."""
        index = self.grid.find(slot)
        if index is None:
            return None
        while index >= 0:
            cell = self.cell_at(day, self.grid.key_at(index))
            if cell.state == CellState.anchored:
                return cell.event
            if cell.state == CellState.empty:
                return None
            index -= 1
        return None

    def span_cell_keys(self, day: str, start: str, end: str) -> list[str]:
        return [cell_key(day, slot) for slot in self.grid.span_keys(start, end)]

    def blocking_events(
        self,
        day: str,
        start: str,
        end: str,
        editing: ScheduledEvent | None = None,
    ) -> list[ScheduledEvent]:
        """Events that block ``[start, end)`` on ``day``, in slot order, ignoring the pre-edit snapshot."""
        own_keys = self._own_keys(editing)
        blockers: list[ScheduledEvent] = []
        for slot in self.grid.span_keys(start, end):
            key = cell_key(day, slot)
            if key in own_keys or self._cells.get(key, EMPTY).is_free:
                continue
            owner = self.owner_of(day, slot)
            if owner is not None and owner not in blockers:
                blockers.append(owner)
        return blockers

    def place(self, event: ScheduledEvent, editing: ScheduledEvent | None = None) -> None:
        """Place ``event``; when ``editing`` is given it is the pre-edit snapshot being replaced.

        Either the whole span is written or the grid is left untouched.
        """
        start_index = self.grid.index_of(event.start_time)
        end_index = self.grid.index_of(event.end_time)
        if end_index <= start_index:
            raise InvalidTimeRangeError(event.start_time, event.end_time)

        blockers = self.blocking_events(event.day, event.start_time, event.end_time, editing)
        if blockers:
            raise InternalConflictError([Conflict.internal(blockers[0])])

        if editing is not None and self.is_placed(editing):
            self._clear(editing.day, editing.start_time, editing.end_time)

        keys = self.span_cell_keys(event.day, event.start_time, event.end_time)
        self._cells[keys[0]] = anchored(event)
        for key in keys[1:]:
            self._cells[key] = OCCUPIED
        logger.debug("Placed %s on %s %s-%s", event.label, event.day, event.start_time, event.end_time)

    def remove(self, day: str, start: str) -> ScheduledEvent | None:
        cell = self.cell_at(day, start)
        if cell.state != CellState.anchored or cell.event is None:
            return None
        event = cell.event
        self._clear(day, event.start_time, event.end_time)
        return event

    def is_placed(self, event: ScheduledEvent) -> bool:
        return self.cell_at(event.day, event.start_time).event == event

    def _own_keys(self, editing: ScheduledEvent | None) -> set[str]:
        if editing is None or not self.is_placed(editing):
            return set()
        return set(self.span_cell_keys(editing.day, editing.start_time, editing.end_time))

    def _clear(self, day: str, start: str, end: str) -> None:
        for key in self.span_cell_keys(day, start, end):
            self._cells.pop(key, None)
