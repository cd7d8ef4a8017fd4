import pytest

ACADEMIC_YEAR = "2024-2025"


@pytest.fixture
def catalog(client):
    course = client.post("/api/courses/", json={"name": "Computer Science", "abbreviation": "BSCS"}).json()
    other_course = client.post(
        "/api/courses/", json={"name": "Information Technology", "abbreviation": "BSIT"}
    ).json()
    cs101 = client.post("/api/subjects/", json={"code": "CS101", "name": "Intro to Computing"}).json()
    net201 = client.post(
        "/api/subjects/",
        json={"code": "NET201", "name": "Networks", "has_lab": True, "lecture_units": 3, "lab_units": 1},
    ).json()
    offering = client.post(
        "/api/offerings/",
        json={
            "subjectId": cs101["id"],
            "courseIds": [course["id"]],
            "yearLevel": "1",
            "semester": "1",
            "academicYear": ACADEMIC_YEAR,
            "assignedTeachers": [{"teacherId": "t-1", "teacherName": "Ada Lovelace"}],
            "preferredRooms": [{"roomName": "Room 101"}],
        },
    ).json()
    return {
        "course": course["id"],
        "other_course": other_course["id"],
        "cs101": cs101["id"],
        "net201": net201["id"],
        "offering": offering["id"],
    }


def _event(day, start, end, subject_id, session_type="lecture", room="Room 101", teacher_id=None):
    event = {
        "day": day,
        "startTime": start,
        "endTime": end,
        "subjectId": subject_id,
        "sessionType": session_type,
        "room": room,
    }
    if teacher_id:
        event["assignedTeacher"] = {"teacherId": teacher_id, "teacherName": "Ada Lovelace"}
    return event


def _schedule(course_id, events, *, name="BSCS 1-1", year_level="1", academic_year=ACADEMIC_YEAR):
    return {
        "name": name,
        "academicYear": academic_year,
        "courseId": course_id,
        "yearLevel": year_level,
        "semester": "1",
        "events": events,
    }


def test_create_schedule_resolves_offering_ids_and_fills_subject_details(client, catalog):
    response = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["course"],
            [
                _event("Tuesday", "08:00", "09:30", catalog["cs101"]),
                _event("Monday", "08:00", "09:30", catalog["offering"], teacher_id="t-1"),
            ],
        ),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["courseAbbreviation"] == "BSCS"
    assert [event["day"] for event in body["events"]] == ["Monday", "Tuesday"]
    assert {event["subjectId"] for event in body["events"]} == {catalog["cs101"]}
    assert body["events"][0]["subjectCode"] == "CS101"
    assert body["events"][0]["assignedTeacher"]["teacherId"] == "t-1"

    fetched = client.get(f"/api/schedules/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["events"] == body["events"]


def test_create_schedule_rejects_excess_hours(client, catalog):
    events = [
        _event("Monday", "08:00", "09:30", catalog["cs101"]),
        _event("Tuesday", "08:00", "09:30", catalog["cs101"]),
        _event("Wednesday", "08:00", "09:30", catalog["cs101"]),
    ]
    response = client.post("/api/schedules/", json=_schedule(catalog["course"], events))

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Subject hours exceeded"
    violation = body["details"]["violations"][0]
    assert violation["subjectCode"] == "CS101"
    assert violation["scheduledHours"] == 4.5
    assert violation["requiredHours"] == 3
    assert violation["excessHours"] == 1.5


def test_create_schedule_rejects_lab_without_lab_component(client, catalog):
    events = [_event("Monday", "08:00", "09:30", catalog["cs101"], session_type="lab")]
    response = client.post("/api/schedules/", json=_schedule(catalog["course"], events))

    assert response.status_code == 400
    assert "does not have a lab" in response.json()["message"]


def test_create_schedule_rejects_internal_overlap_and_unknown_subjects(client, catalog):
    overlapping = [
        _event("Monday", "08:00", "09:30", catalog["cs101"]),
        _event("Monday", "09:00", "10:00", catalog["net201"]),
    ]
    response = client.post("/api/schedules/", json=_schedule(catalog["course"], overlapping))
    assert response.status_code == 400
    conflicts = response.json()["details"]["conflicts"]
    assert [item["type"] for item in conflicts] == ["INTERNAL"]

    unknown = client.post(
        "/api/schedules/",
        json=_schedule(catalog["course"], [_event("Monday", "08:00", "09:00", "missing")]),
    )
    assert unknown.status_code == 400
    assert unknown.json()["details"]["subjectIds"] == ["missing"]


def test_create_schedule_rejects_off_grid_times_and_missing_course(client, catalog):
    off_grid = client.post(
        "/api/schedules/",
        json=_schedule(catalog["course"], [_event("Monday", "06:00", "07:30", catalog["cs101"])]),
    )
    assert off_grid.status_code == 400

    missing_course = client.post(
        "/api/schedules/",
        json=_schedule("no-course", [_event("Monday", "08:00", "09:30", catalog["cs101"])]),
    )
    assert missing_course.status_code == 404


def test_cohort_teacher_and_room_conflicts_across_schedules(client, catalog):
    first = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["course"],
            [_event("Monday", "08:00", "09:30", catalog["cs101"], teacher_id="t-1")],
        ),
    )
    assert first.status_code == 201

    same_cohort = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["course"],
            [_event("Monday", "08:30", "09:30", catalog["net201"], room="Room 202")],
            name="BSCS 1-1 B",
        ),
    )
    assert same_cohort.status_code == 400
    conflict = same_cohort.json()["details"]["conflicts"][0]
    assert conflict["type"] == "STUDENT"
    assert conflict["scheduleName"] == "BSCS 1-1"
    assert conflict["courseInfo"] == "BSCS Y1 S1"

    same_teacher = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["other_course"],
            [_event("Monday", "09:00", "10:00", catalog["net201"], room="Room 202", teacher_id="t-1")],
            name="BSIT 1-1",
        ),
    )
    assert same_teacher.status_code == 400
    assert same_teacher.json()["details"]["conflicts"][0]["type"] == "TEACHER"

    same_room = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["other_course"],
            [_event("Monday", "09:00", "10:00", catalog["net201"], room=" room 101 ")],
            name="BSIT 1-1",
        ),
    )
    assert same_room.status_code == 400
    assert same_room.json()["details"]["conflicts"][0]["type"] == "ROOM"

    other_year = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["course"],
            [_event("Monday", "08:00", "09:30", catalog["cs101"], teacher_id="t-1")],
            academic_year="2025-2026",
        ),
    )
    assert other_year.status_code == 201


def test_update_excludes_itself_from_conflicts(client, catalog):
    created = client.post(
        "/api/schedules/",
        json=_schedule(catalog["course"], [_event("Monday", "08:00", "09:30", catalog["cs101"])]),
    ).json()

    updated = client.put(
        f"/api/schedules/{created['id']}",
        json={
            "name": "Renamed",
            "events": [
                _event("Monday", "08:30", "10:00", catalog["cs101"]),
                _event("Friday", "13:00", "14:30", catalog["cs101"]),
            ],
        },
    )

    assert updated.status_code == 200
    body = updated.json()
    assert body["name"] == "Renamed"
    assert len(body["events"]) == 2


def test_conflict_context_by_teacher_and_soft_delete(client, catalog):
    first = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["course"],
            [
                _event("Monday", "08:00", "09:30", catalog["cs101"], teacher_id="t-1"),
                _event("Tuesday", "08:00", "09:00", catalog["net201"]),
            ],
        ),
    ).json()
    second = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["other_course"],
            [_event("Monday", "10:00", "11:00", catalog["net201"], room="Lab A")],
            name="BSIT 1-1",
        ),
    ).json()

    context = client.get(
        f"/api/schedules/check-conflicts/{catalog['course']}/1/1",
        params={"excludeScheduleId": first["id"]},
    ).json()
    assert [item["id"] for item in context] == [second["id"]]

    teaching = client.get("/api/schedules/by-teacher/t-1").json()
    assert [item["id"] for item in teaching] == [first["id"]]
    assert len(teaching[0]["events"]) == 1

    assert client.delete(f"/api/schedules/{first['id']}").status_code == 200
    assert client.get(f"/api/schedules/{first['id']}").status_code == 404
    assert client.delete(f"/api/schedules/{first['id']}").status_code == 404
    assert [item["id"] for item in client.get("/api/schedules/").json()] == [second["id"]]


def test_placement_check_reports_hours_and_rejections(client, catalog):
    base = {
        "courseId": catalog["course"],
        "yearLevel": "1",
        "semester": "1",
        "academicYear": ACADEMIC_YEAR,
        "events": [_event("Monday", "08:00", "09:30", catalog["cs101"])],
    }

    accepted = client.post(
        "/api/schedules/placement-check",
        json={
            **base,
            "candidate": {
                "day": "Tuesday",
                "startTime": "08:00",
                "endTime": "09:30",
                "subjectId": catalog["offering"],
                "teacherId": "t-1",
            },
        },
    )
    assert accepted.status_code == 200
    assert accepted.json()["ok"] is True
    assert accepted.json()["hours"] == {"required": 3.0, "current": 3.0, "projected": 3.0, "status": "complete"}

    too_long = client.post(
        "/api/schedules/placement-check",
        json={
            **base,
            "candidate": {"day": "Tuesday", "startTime": "10:00", "endTime": "12:00", "subjectId": catalog["cs101"]},
        },
    ).json()
    assert too_long["ok"] is False
    assert too_long["error"] == "HoursExceededError"
    assert too_long["hours"]["status"] == "over"

    overlapping = client.post(
        "/api/schedules/placement-check",
        json={
            **base,
            "candidate": {"day": "Monday", "startTime": "08:30", "endTime": "09:00", "subjectId": catalog["cs101"]},
        },
    ).json()
    assert overlapping["ok"] is False
    assert overlapping["error"] == "InternalConflictError"
    assert overlapping["conflicts"][0]["type"] == "INTERNAL"

    editing = client.post(
        "/api/schedules/placement-check",
        json={
            **base,
            "candidate": {"day": "Monday", "startTime": "08:00", "endTime": "11:00", "subjectId": catalog["cs101"]},
            "editing": base["events"][0],
        },
    ).json()
    assert editing["ok"] is True
    assert editing["hours"]["current"] == 3.0

    backwards = client.post(
        "/api/schedules/placement-check",
        json={
            **base,
            "candidate": {"day": "Friday", "startTime": "10:00", "endTime": "09:00", "subjectId": catalog["cs101"]},
        },
    ).json()
    assert backwards["error"] == "InvalidTimeRangeError"
    assert backwards["hours"] is None


def test_placement_check_counts_draft_events_stored_by_offering_id(client, catalog):
    response = client.post(
        "/api/schedules/placement-check",
        json={
            "courseId": catalog["course"],
            "yearLevel": "1",
            "semester": "1",
            "academicYear": ACADEMIC_YEAR,
            "events": [
                _event("Monday", "08:00", "09:30", catalog["offering"]),
                _event("Tuesday", "08:00", "09:30", catalog["offering"]),
            ],
            "candidate": {"day": "Wednesday", "startTime": "08:00", "endTime": "09:00", "subjectId": catalog["cs101"]},
        },
    ).json()

    assert response["ok"] is False
    assert response["error"] == "HoursExceededError"
    assert response["hours"]["current"] == 3.0
    assert response["hours"]["projected"] == 4.0


def test_placement_check_rejects_days_outside_the_week(client, catalog):
    response = client.post(
        "/api/schedules/placement-check",
        json={
            "courseId": catalog["course"],
            "yearLevel": "1",
            "semester": "1",
            "academicYear": ACADEMIC_YEAR,
            "candidate": {"day": "Saturday", "startTime": "08:00", "endTime": "09:00", "subjectId": catalog["cs101"]},
        },
    ).json()

    assert response["ok"] is False
    assert response["error"] == "PlacementError"
    assert "Saturday" in response["message"]


def test_recyclable_and_detailed_views(client, catalog):
    first = client.post(
        "/api/schedules/",
        json=_schedule(catalog["course"], [_event("Monday", "08:00", "09:30", catalog["cs101"], teacher_id="t-1")]),
    ).json()
    later = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["other_course"],
            [_event("Monday", "10:00", "11:00", catalog["net201"], room="Lab A")],
            name="BSIT 1-1",
            academic_year="2025-2026",
        ),
    ).json()

    recyclable = client.get("/api/schedules/recyclable").json()
    assert [item["id"] for item in recyclable] == [later["id"], first["id"]]
    assert recyclable[1]["courseCode"] == "BSCS"
    assert recyclable[1]["subjectCount"] == 1

    detailed = client.get(f"/api/schedules/{first['id']}/detailed")
    assert detailed.status_code == 200
    body = detailed.json()
    assert body["name"] == "BSCS 1-1"
    assert [item["id"] for item in body["subjects"]] == [catalog["offering"]]
    assert body["subjects"][0]["subject"]["code"] == "CS101"

    assert client.get("/api/schedules/missing/detailed").status_code == 404


def test_recycle_copies_offerings_and_applies_teacher_mappings(client, catalog):
    source = client.post(
        "/api/schedules/",
        json=_schedule(
            catalog["course"],
            [
                _event("Monday", "08:00", "09:30", catalog["cs101"], teacher_id="t-1"),
                _event("Tuesday", "08:00", "09:30", catalog["cs101"], teacher_id="t-1"),
            ],
        ),
    ).json()
    request = {
        "sourceScheduleId": source["id"],
        "targetAcademicYear": "2025-2026",
        "targetSemester": "1",
        "teacherMappings": [
            {
                "offeringId": catalog["offering"],
                "assignmentIndex": 0,
                "newTeacherId": "t-9",
                "newTeacherName": "Grace Hopper",
            }
        ],
    }

    response = client.post("/api/schedules/recycle", json=request)

    assert response.status_code == 201
    result = response.json()
    assert result["success"] is True
    assert result["subjectsCopied"] == 1
    assert result["teachersUpdated"] == 1

    copy = client.get(f"/api/schedules/{result['newScheduleId']}").json()
    assert copy["name"] == "BSCS Year 1 - 2025-2026 Semester 1"
    assert copy["academicYear"] == "2025-2026"
    assert {event["assignedTeacher"]["teacherId"] for event in copy["events"]} == {"t-9"}

    offerings = client.get("/api/offerings/", params={"academicYear": "2025-2026"}).json()
    assert [item["subjectId"] for item in offerings] == [catalog["cs101"]]
    assert offerings[0]["assignedTeachers"][0]["teacherId"] == "t-9"
    assert offerings[0]["id"] != catalog["offering"]

    original = client.get(f"/api/schedules/{source['id']}").json()
    assert {event["assignedTeacher"]["teacherId"] for event in original["events"]} == {"t-1"}

    duplicate = client.post("/api/schedules/recycle", json=request)
    assert duplicate.status_code == 409

    missing = client.post("/api/schedules/recycle", json={**request, "sourceScheduleId": "missing"})
    assert missing.status_code == 404

    bad_year = client.post("/api/schedules/recycle", json={**request, "targetAcademicYear": "2025-2027"})
    assert bad_year.status_code == 422
