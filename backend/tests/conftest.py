import os

# Must be set before collegedesk modules build the engine at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from collegedesk.api.deps import get_db  # noqa: E402
from collegedesk.db.base import Base  # noqa: E402
from collegedesk.main import app  # noqa: E402
import collegedesk.models  # noqa: E402,F401


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register_and_login(client, *, name, email, role, password="password123"):
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password, "role": role},
    )
    assert response.status_code == 201, response.text
    login = client.post("/api/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


@pytest.fixture()
def admin_headers(client):
    return register_and_login(client, name="Admin User", email="admin@example.com", role="admin")


@pytest.fixture()
def teacher_headers(client):
    return register_and_login(client, name="Teacher User", email="teacher@example.com", role="teacher")


@pytest.fixture()
def student_headers(client):
    return register_and_login(client, name="Student User", email="student@example.com", role="student")


@pytest.fixture()
def catalog(client, admin_headers):
    """One department with two subjects and two teachers, created through the API."""
    department = client.post(
        "/api/departments/", json={"name": "Computer Science", "code": "cse"}, headers=admin_headers
    )
    assert department.status_code == 201, department.text
    department_id = department.json()["id"]

    subjects = []
    for name, code, semester in (("Data Structures", "CS201", 3), ("Operating Systems", "CS301", 3)):
        response = client.post(
            "/api/subjects/",
            json={"name": name, "code": code, "category": "core", "semester": semester, "departmentId": department_id},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        subjects.append(response.json())

    teachers = []
    for faculty_id, name, email, subject in (
        ("FAC001", "Dr. Rao", "rao@example.com", subjects[0]),
        ("FAC002", "Dr. Iyer", "iyer@example.com", subjects[1]),
    ):
        response = client.post(
            "/api/faculties/",
            json={
                "facultyId": faculty_id,
                "name": name,
                "email": email,
                "departmentId": department_id,
                "subjectIds": [subject["id"]],
                "designations": ["Assistant Professor"],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        teachers.append(response.json())

    return {"department_id": department_id, "subjects": subjects, "teachers": teachers}


@pytest.fixture()
def schedule_payload(catalog):
    def build(**overrides):
        payload = {
            "academicYear": "2025-2026",
            "semester": 3,
            "departmentId": catalog["department_id"],
            "classSection": "A",
            "day": "MONDAY",
            "startTime": "09:00",
            "endTime": "10:00",
            "subjectId": catalog["subjects"][0]["id"],
            "teacherId": catalog["teachers"][0]["id"],
            "roomId": "R101",
        }
        payload.update(overrides)
        return payload

    return build
