def test_course_crud_and_duplicates(client):
    created = client.post("/api/courses/", json={"name": "Computer Science", "abbreviation": "BSCS"})
    assert created.status_code == 201
    course_id = created.json()["id"]

    duplicate = client.post("/api/courses/", json={"name": "Other", "abbreviation": "BSCS"})
    assert duplicate.status_code == 409

    updated = client.put(f"/api/courses/{course_id}", json={"description": "Four-year program"})
    assert updated.status_code == 200
    assert updated.json()["description"] == "Four-year program"

    assert client.get(f"/api/courses/{course_id}").status_code == 200
    assert client.delete(f"/api/courses/{course_id}").json() == {"success": True}
    assert client.get(f"/api/courses/{course_id}").status_code == 404


def test_subject_defaults_and_required_hours(client):
    lab = client.post("/api/subjects/", json={"code": " net201 ", "name": "Networks", "has_lab": True})
    assert lab.status_code == 201
    body = lab.json()
    assert body["code"] == "NET201"
    assert body["lecture_units"] == 2
    assert body["lab_units"] == 1
    assert body["required_hours"] == 5

    plain = client.post("/api/subjects/", json={"code": "CS101", "name": "Intro"}).json()
    assert plain["lecture_units"] == 3
    assert plain["lab_units"] == 0
    assert plain["required_hours"] == 3

    assert client.post("/api/subjects/", json={"code": "cs101", "name": "Again"}).status_code == 409
    invalid = client.post("/api/subjects/", json={"code": "X1", "name": "X", "lab_units": 2})
    assert invalid.status_code == 422

    client.put(f"/api/subjects/{plain['id']}", json={"is_active": False})
    codes = [item["code"] for item in client.get("/api/subjects/").json()]
    assert codes == ["NET201"]
    all_codes = [item["code"] for item in client.get("/api/subjects/", params={"include_inactive": True}).json()]
    assert all_codes == ["CS101", "NET201"]


def test_room_crud(client):
    created = client.post("/api/rooms/", json={"name": "Lab A", "type": "laboratory", "capacity": 30})
    assert created.status_code == 201
    room_id = created.json()["id"]
    client.post("/api/rooms/", json={"name": "Room 101"})

    assert client.post("/api/rooms/", json={"name": "Lab A"}).status_code == 409
    labs = client.get("/api/rooms/", params={"type": "laboratory"}).json()
    assert [item["name"] for item in labs] == ["Lab A"]

    renamed = client.put(f"/api/rooms/{room_id}", json={"name": "Room 101"})
    assert renamed.status_code == 409
    assert client.delete(f"/api/rooms/{room_id}").status_code == 200
    assert client.delete(f"/api/rooms/{room_id}").status_code == 404


def test_offerings_filter_nest_subject_and_reject_overlap(client):
    course_a = client.post("/api/courses/", json={"name": "Computer Science", "abbreviation": "BSCS"}).json()["id"]
    course_b = client.post("/api/courses/", json={"name": "Information Technology", "abbreviation": "BSIT"}).json()["id"]
    subject_id = client.post("/api/subjects/", json={"code": "CS101", "name": "Intro"}).json()["id"]
    payload = {
        "subjectId": subject_id,
        "courseIds": [course_a, course_b],
        "yearLevel": "1",
        "semester": "1",
        "academicYear": "2024-2025",
        "assignedTeachers": [{"teacherId": "t-1", "teacherName": "Ada Lovelace"}],
        "preferredRooms": [{"roomName": "Room 101"}],
    }
    created = client.post("/api/offerings/", json=payload)
    assert created.status_code == 201
    offering = created.json()
    assert offering["subject"]["code"] == "CS101"
    assert offering["subject"]["requiredHours"] == 3

    overlap = client.post("/api/offerings/", json={**payload, "courseIds": [course_b]})
    assert overlap.status_code == 409
    other_year = client.post("/api/offerings/", json={**payload, "academicYear": "2025-2026"})
    assert other_year.status_code == 201

    listed = client.get(
        "/api/offerings/",
        params={"courseId": course_b, "yearLevel": "1", "semester": "1", "academicYear": "2024-2025"},
    ).json()
    assert [item["id"] for item in listed] == [offering["id"]]
    assert client.get("/api/offerings/", params={"courseId": "nope"}).json() == []

    bad_year = client.post("/api/offerings/", json={**payload, "academicYear": "2024-2026"})
    assert bad_year.status_code == 422

    assert client.delete(f"/api/offerings/{offering['id']}").status_code == 200
    assert client.get(f"/api/offerings/{offering['id']}").json()["isActive"] is False
    active = client.get("/api/offerings/", params={"academicYear": "2024-2025"}).json()
    assert active == []


def _catalog_with_schedule(client):
    course_id = client.post("/api/courses/", json={"name": "Computer Science", "abbreviation": "BSCS"}).json()["id"]
    subject_id = client.post("/api/subjects/", json={"code": "CS101", "name": "Intro"}).json()["id"]
    client.post(
        "/api/offerings/",
        json={
            "subjectId": subject_id,
            "courseIds": [course_id],
            "yearLevel": "1",
            "semester": "1",
            "academicYear": "2024-2025",
        },
    )
    schedule = client.post(
        "/api/schedules/",
        json={
            "name": "BSCS 1-1",
            "academicYear": "2024-2025",
            "courseId": course_id,
            "yearLevel": "1",
            "semester": "1",
            "events": [
                {
                    "day": "Monday",
                    "startTime": "08:00",
                    "endTime": "09:30",
                    "subjectId": subject_id,
                    "sessionType": "lecture",
                    "room": " room 101 ",
                }
            ],
        },
    ).json()
    return course_id, subject_id, schedule


def test_room_availability(client):
    room_id = client.post("/api/rooms/", json={"name": "Room 101", "code": "R101"}).json()["id"]
    _, _, schedule = _catalog_with_schedule(client)
    url = f"/api/rooms/{room_id}/availability"

    busy = client.get(url, params={"day": "Monday", "startTime": "09:00", "endTime": "10:00"}).json()
    assert busy["available"] is False
    assert len(busy["conflicts"]) == 1
    assert busy["conflicts"][0]["scheduleId"] == schedule["id"]
    assert busy["conflicts"][0]["courseInfo"] == "BSCS Y1 S1"
    assert busy["conflicts"][0]["event"]["startTime"] == "08:00"

    adjacent = client.get(url, params={"day": "Monday", "startTime": "09:30", "endTime": "10:00"}).json()
    assert adjacent == {"available": True, "conflicts": []}
    other_day = client.get(url, params={"day": "Tuesday", "startTime": "08:00", "endTime": "09:00"}).json()
    assert other_day["available"] is True
    excluded = client.get(
        url,
        params={"day": "Monday", "startTime": "08:00", "endTime": "09:00", "excludeScheduleId": schedule["id"]},
    ).json()
    assert excluded["available"] is True
    other_year = client.get(
        url,
        params={"day": "Monday", "startTime": "08:00", "endTime": "09:00", "academicYear": "2025-2026"},
    ).json()
    assert other_year["available"] is True

    backwards = client.get(url, params={"day": "Monday", "startTime": "10:00", "endTime": "09:00"})
    assert backwards.status_code == 400
    assert client.get(url, params={"day": "Monday", "startTime": "8:00", "endTime": "09:00"}).status_code == 422
    missing = client.get(
        "/api/rooms/missing/availability", params={"day": "Monday", "startTime": "08:00", "endTime": "09:00"}
    )
    assert missing.status_code == 404


def test_course_usage(client):
    course_id, _, _ = _catalog_with_schedule(client)
    unused = client.post("/api/courses/", json={"name": "Information Technology", "abbreviation": "BSIT"}).json()["id"]

    usage = client.get(f"/api/courses/{course_id}/usage").json()
    assert usage == {"has_subjects": True, "subject_count": 1, "offering_count": 1, "schedule_count": 1}

    empty = client.get(f"/api/courses/{unused}/usage").json()
    assert empty == {"has_subjects": False, "subject_count": 0, "offering_count": 0, "schedule_count": 0}
    assert client.get("/api/courses/missing/usage").status_code == 404
