from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from scheduling.core.config import get_settings
from scheduling.core.exceptions import DataIntegrityError


def parse_clock(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def slot_key(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def display_time(minutes: int) -> str:
    hour, minute = divmod(minutes, 60)
    hour12 = hour - 12 if hour > 12 else 12 if hour == 0 else hour
    period = "PM" if hour >= 12 else "AM"
    return f"{hour12}:{minute:02d} {period}"


@dataclass(frozen=True)
class TimeSlot:
    index: int
    key: str
    display: str


def generate_slots(start: str = "07:00", end: str = "18:00", step_minutes: int = 30) -> tuple[TimeSlot, ...]:
    """Return the ordered slot boundaries from ``start`` to ``end`` inclusive.

    The final boundary is only ever used as an end time; an event can start on
    any slot except the last one.
    """
    first = parse_clock(start)
    last = parse_clock(end)
    slots: list[TimeSlot] = []
    current = first
    while current <= last:
        slots.append(TimeSlot(index=len(slots), key=slot_key(current), display=display_time(current)))
        current += step_minutes
    return tuple(slots)


class TimeGrid:
    """Index over the canonical weekly slot boundaries."""

    def __init__(self, slots: tuple[TimeSlot, ...] | None = None, *, slot_minutes: int = 30) -> None:
        self.slots = tuple(slots) if slots is not None else generate_slots(step_minutes=slot_minutes)
        self.slot_minutes = slot_minutes
        self._index_by_key = {slot.key: slot.index for slot in self.slots}

    def __len__(self) -> int:
        return len(self.slots)

    def __contains__(self, key: object) -> bool:
        return key in self._index_by_key

    @property
    def keys(self) -> list[str]:
        return [slot.key for slot in self.slots]

    def find(self, key: str | None) -> int | None:
        if key is None:
            return None
        return self._index_by_key.get(key)

    def index_of(self, key: str) -> int:
        index = self.find(key)
        if index is None:
            raise DataIntegrityError(f"Unknown time slot {key!r}", details={"slot": key})
        return index

    def key_at(self, index: int) -> str:
        return self.slots[index].key

    def span_keys(self, start: str, end: str) -> list[str]:
        start_index = self.index_of(start)
        end_index = self.index_of(end)
        return [slot.key for slot in self.slots[start_index:end_index]]

    def slot_count(self, start: str, end: str) -> int:
        return self.index_of(end) - self.index_of(start)

    def hours_between(self, start: str, end: str) -> float:
        return self.slot_count(start, end) * self.slot_minutes / 60

    def format_duration(self, start: str, end: str) -> str:
        minutes = self.slot_count(start, end) * self.slot_minutes
        if minutes >= 60:
            hours, remainder = divmod(minutes, 60)
            return f"{hours}h {remainder}m" if remainder else f"{hours}h"
        return f"{minutes}m"

    def end_options(self, start: str) -> list[TimeSlot]:
        start_index = self.index_of(start)
        return list(self.slots[start_index + 1:])


@lru_cache
def get_time_grid() -> TimeGrid:
    settings = get_settings()
    slots = generate_slots(settings.day_start, settings.day_end, settings.slot_minutes)
    return TimeGrid(slots, slot_minutes=settings.slot_minutes)
