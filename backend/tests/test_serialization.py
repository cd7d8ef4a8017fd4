import logging

from conftest import make_event
from scheduling.core.exceptions import DataIntegrityWarning
from scheduling.services.offerings import OfferingIndex
from scheduling.services.placement_store import EventPlacementStore
from scheduling.services.serialization import events_to_grid, grid_to_events, normalize_subject_id

PERSISTED = [
    {
        "day": "Monday",
        "startTime": "08:00",
        "endTime": "09:30",
        "subjectId": {"_id": "s-cs101", "code": "CS101", "name": "Intro to Computing"},
        "sessionType": "lecture",
        "room": "Room 101",
        "assignedTeacher": {"teacherId": {"_id": "t-1", "name": "Ada Lovelace"}},
    },
    {
        "day": "Wednesday",
        "startTime": "13:00",
        "endTime": "16:00",
        "subjectId": "s-net201",
        "subjectCode": "NET201",
        "sessionType": "lab",
        "room": "Lab A",
    },
]


def _tuples(events):
    return {(item.day, item.start_time, item.end_time, item.subject_id, item.session_type) for item in events}


def test_normalize_subject_id_accepts_populated_and_scalar_values():
    assert normalize_subject_id({"_id": "abc", "name": "x"}) == "abc"
    assert normalize_subject_id({"id": 42}) == "42"
    assert normalize_subject_id(" abc ") == "abc"
    assert normalize_subject_id({}) is None
    assert normalize_subject_id(None) is None


def test_round_trip_preserves_event_tuples(grid):
    hydration = events_to_grid(PERSISTED, grid)
    assert hydration.warnings == []

    events, warnings = grid_to_events(hydration.store)
    assert warnings == []
    assert _tuples(events) == {
        ("Monday", "08:00", "09:30", "s-cs101", "lecture"),
        ("Wednesday", "13:00", "16:00", "s-net201", "lab"),
    }
    monday = events[0]
    assert monday.assigned_teacher.teacher_name == "Ada Lovelace"
    assert monday.to_payload()["subjectId"] == "s-cs101"


def test_malformed_events_are_skipped_with_warnings(grid, caplog):
    raw = PERSISTED + [
        {"day": "Friday", "startTime": "08:00", "endTime": "09:00"},
        {"day": "Friday", "startTime": "08:15", "endTime": "09:00", "subjectId": "s-x"},
        {"day": "Friday", "startTime": "10:00", "endTime": "09:00", "subjectId": "s-x"},
        {"day": "Monday", "startTime": "09:00", "endTime": "10:00", "subjectId": "s-overlap"},
    ]
    with caplog.at_level(logging.WARNING, logger="scheduling.services.serialization"):
        hydration = events_to_grid(raw, grid)

    assert len(hydration.store) == 2
    assert len(hydration.warnings) == 4
    assert all(isinstance(item, DataIntegrityWarning) for item in hydration.warnings)
    assert "no subject id" in hydration.warnings[0].reason
    assert "overlaps CS101" in hydration.warnings[-1].reason
    assert len(caplog.records) == 4


def test_offering_ids_are_resolved_to_catalog_subject_ids(grid, cs101):
    store = EventPlacementStore(grid)
    store.place(make_event(start="08:00", end="09:00", subject_id="off-cs101", code="", name=""))

    events, warnings = grid_to_events(store, OfferingIndex([cs101]))

    assert warnings == []
    assert events[0].subject_id == "s-cs101"
    assert events[0].subject_code == "CS101"
    assert events[0].subject_name == "Intro to Computing"


def test_events_without_subject_are_dropped(grid):
    store = EventPlacementStore(grid)
    store.place(make_event(subject_id=""))
    events, warnings = grid_to_events(store)
    assert events == []
    assert len(warnings) == 1


def test_events_to_grid_maps_offering_ids_to_catalog_subjects(cs101):
    hydration = events_to_grid(
        [{"day": "Monday", "startTime": "08:00", "endTime": "09:30", "subjectId": "off-cs101", "sessionType": "lecture"}],
        offerings=OfferingIndex([cs101]),
    )

    event = hydration.store.owner_of("Monday", "08:00")
    assert event.subject_id == "s-cs101"
    assert event.subject_code == "CS101"
    assert event.subject_name == "Intro to Computing"
    assert hydration.warnings == []
