import pytest

from scheduling.core.exceptions import DataIntegrityError
from scheduling.services.time_grid import TimeGrid, display_time, generate_slots, get_time_grid


def test_default_grid_has_23_half_hour_boundaries():
    slots = generate_slots()
    assert len(slots) == 23
    assert slots[0].key == "07:00"
    assert slots[-1].key == "18:00"
    assert slots[1].key == "07:30"
    assert [slot.index for slot in slots] == list(range(23))


def test_display_labels_use_twelve_hour_clock():
    assert display_time(7 * 60) == "7:00 AM"
    assert display_time(12 * 60 + 30) == "12:30 PM"
    assert display_time(18 * 60) == "6:00 PM"
    assert display_time(0) == "12:00 AM"


def test_index_lookup_and_unknown_slot(grid):
    assert grid.find("09:00") == 4
    assert grid.find("09:15") is None
    assert grid.find(None) is None
    with pytest.raises(DataIntegrityError):
        grid.index_of("09:15")


def test_span_keys_exclude_end_boundary(grid):
    assert grid.span_keys("09:00", "10:00") == ["09:00", "09:30"]
    assert grid.span_keys("09:00", "09:00") == []


def test_hours_and_duration_labels(grid):
    assert grid.hours_between("08:00", "09:30") == 1.5
    assert grid.format_duration("08:00", "09:30") == "1h 30m"
    assert grid.format_duration("08:00", "10:00") == "2h"
    assert grid.format_duration("08:00", "08:30") == "30m"


def test_end_options_only_offer_later_slots(grid):
    options = grid.end_options("17:00")
    assert [slot.key for slot in options] == ["17:30", "18:00"]
    assert grid.end_options("18:00") == []


def test_custom_step():
    grid = TimeGrid(generate_slots("08:00", "10:00", 60), slot_minutes=60)
    assert grid.keys == ["08:00", "09:00", "10:00"]
    assert grid.hours_between("08:00", "10:00") == 2


def test_settings_grid_is_cached():
    assert get_time_grid() is get_time_grid()
    assert len(get_time_grid()) == 23
