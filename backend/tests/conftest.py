import os

# The engine is built at import time; keep the app off the production database.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from scheduling.api.deps import get_db  # noqa: E402
from scheduling.db.base import Base  # noqa: E402
from scheduling.main import app  # noqa: E402
from scheduling.services.events import AssignedTeacher, ScheduledEvent  # noqa: E402
from scheduling.services.offerings import normalize_offering  # noqa: E402
from scheduling.services.time_grid import TimeGrid  # noqa: E402


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def grid():
    return TimeGrid()


def make_event(day="Monday", start="09:00", end="10:00", subject_id="s-cs101", **kwargs):
    teacher = kwargs.pop("teacher", None)
    return ScheduledEvent(
        day=day,
        start_time=start,
        end_time=end,
        subject_id=subject_id,
        subject_code=kwargs.pop("code", "CS101"),
        subject_name=kwargs.pop("name", "Intro to Computing"),
        session_type=kwargs.pop("session_type", "lecture"),
        room=kwargs.pop("room", ""),
        assigned_teacher=AssignedTeacher(teacher, f"Teacher {teacher}") if teacher else None,
    )


@pytest.fixture()
def cs101():
    return normalize_offering(
        {
            "_id": "off-cs101",
            "subjectId": {
                "_id": "s-cs101",
                "code": "CS101",
                "name": "Intro to Computing",
                "lectureUnits": 3,
                "labUnits": 0,
                "hasLab": False,
            },
            "assignedTeachers": [{"teacherId": {"_id": "t-1", "firstName": "Ada", "lastName": "Lovelace"}, "type": "both"}],
            "preferredRooms": ["Room 101", {"roomId": "r-2", "roomName": "Room 102", "capacity": 40}],
            "courseId": ["c-bscs"],
            "yearLevel": 1,
            "semester": "1",
            "academicYear": "2024-2025",
        }
    )


@pytest.fixture()
def net201():
    return normalize_offering(
        {
            "id": "off-net201",
            "subject": {
                "id": "s-net201",
                "code": "NET201",
                "name": "Networks",
                "lectureUnits": 3,
                "labUnits": 2,
                "hasLab": True,
            },
            "assignedTeachers": [
                {"teacherId": "t-2", "teacherName": "Grace Hopper", "type": "lecture"},
                {"teacherId": "t-3", "teacherName": "Alan Turing", "type": "lab"},
            ],
            "preferredRooms": [{"roomName": "Lab A", "roomType": "laboratory"}],
        }
    )
