from sqlalchemy.exc import OperationalError

from collegedesk.services import conflict_service


SCOPE_PARAMS = {"academicYear": "2025-2026", "semester": 3, "classSection": "A"}


def scope_params(catalog, **overrides):
    params = {**SCOPE_PARAMS, "departmentId": catalog["department_id"]}
    params.update(overrides)
    return params


def create(client, headers, payload):
    response = client.post("/api/schedule", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_applies_defaults_and_joins_display_names(client, admin_headers, catalog, schedule_payload):
    payload = schedule_payload(roomId="  ", timeSlotId="")
    data = create(client, admin_headers, payload)

    assert data["roomId"] == "TBA"
    assert data["roomName"] == "TBA"
    assert data["timeSlotId"] is None
    assert data["status"] == "DRAFT"
    assert data["timetableType"] == "REGULAR"
    assert data["sessionType"] == "LECTURE"
    assert data["duration"] == 1
    assert data["isMandatory"] is True
    assert data["repeatWeekly"] is True
    assert data["subjectName"] == "Data Structures"
    assert data["subjectCode"] == "CS201"
    assert data["teacherName"] == "Dr. Rao"
    assert data["teacherFacultyId"] == "FAC001"
    assert data["departmentName"] == "Computer Science"


def test_create_rejects_bad_times_and_unknown_references(client, admin_headers, schedule_payload):
    response = client.post(
        "/api/schedule", json=schedule_payload(startTime="10:00", endTime="09:00"), headers=admin_headers
    )
    assert response.status_code == 422

    response = client.post("/api/schedule", json=schedule_payload(subjectId="missing"), headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["details"] == {"resource": "Subject", "id": "missing"}


def test_list_requires_full_scope(client, admin_headers, catalog):
    response = client.get("/api/schedule", params={"academicYear": "2025-2026", "semester": 3}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required field: departmentId"

    response = client.get("/api/schedule", params=scope_params(catalog, semester="nine"), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "semester"


def test_list_is_ordered_by_day_then_start_time(client, admin_headers, catalog, schedule_payload):
    create(client, admin_headers, schedule_payload(day="WEDNESDAY", startTime="09:00", endTime="10:00"))
    create(client, admin_headers, schedule_payload(day="MONDAY", startTime="11:00", endTime="12:00"))
    create(client, admin_headers, schedule_payload(day="MONDAY", startTime="09:00", endTime="10:00"))
    create(client, admin_headers, schedule_payload(classSection="B", day="MONDAY", startTime="08:00", endTime="09:00"))

    response = client.get("/api/schedule", params=scope_params(catalog), headers=admin_headers)
    assert response.status_code == 200
    rows = [(item["day"], item["startTime"]) for item in response.json()]
    assert rows == [("MONDAY", "09:00"), ("MONDAY", "11:00"), ("WEDNESDAY", "09:00")]


def test_get_update_and_delete(client, admin_headers, catalog, schedule_payload):
    created = create(client, admin_headers, schedule_payload())

    fetched = client.get(f"/api/schedule/{created['id']}", headers=admin_headers)
    assert fetched.status_code == 200
    assert fetched.json()["id"] == created["id"]

    replacement = schedule_payload(
        day="THURSDAY",
        startTime="14:00",
        endTime="16:00",
        subjectId=catalog["subjects"][1]["id"],
        teacherId=catalog["teachers"][1]["id"],
        sessionType="LAB",
        duration=2,
        notes="Bring laptops",
    )
    updated = client.put(f"/api/schedule/{created['id']}", json=replacement, headers=admin_headers)
    assert updated.status_code == 200, updated.text
    body = updated.json()
    assert body["day"] == "THURSDAY"
    assert body["sessionType"] == "LAB"
    assert body["teacherName"] == "Dr. Iyer"
    assert body["classSection"] == "A"

    deleted = client.delete(f"/api/schedule/{created['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    missing = client.get(f"/api/schedule/{created['id']}", headers=admin_headers)
    assert missing.status_code == 404
    assert "not found" in missing.json()["message"]


def test_check_conflicts_reports_each_type(client, admin_headers, catalog, schedule_payload):
    existing = create(client, admin_headers, schedule_payload())

    response = client.post(
        "/api/schedule/check-conflicts",
        json={
            "academicYear": "2025-2026",
            "semester": 3,
            "departmentId": catalog["department_id"],
            "classSection": "A",
            "day": "MONDAY",
            "startTime": "09:30",
            "endTime": "10:30",
            "teacherId": catalog["teachers"][0]["id"],
            "roomId": "R101",
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    conflicts = response.json()["conflicts"]
    assert [item["type"] for item in conflicts] == ["TEACHER", "ROOM", "CLASS"]
    assert conflicts[1]["message"] == "Room R101 already booked for Data Structures by Dr. Rao"
    assert all(item["conflictingSlot"]["id"] == existing["id"] for item in conflicts)


def test_check_conflicts_excludes_the_entry_being_edited(client, admin_headers, catalog, schedule_payload):
    existing = create(client, admin_headers, schedule_payload())
    body = {
        "scheduleId": existing["id"],
        "academicYear": "2025-2026",
        "semester": 3,
        "departmentId": catalog["department_id"],
        "classSection": "A",
        "day": "MONDAY",
        "startTime": "09:00",
        "endTime": "10:00",
        "teacherId": catalog["teachers"][0]["id"],
        "roomId": "R101",
    }
    response = client.post("/api/schedule/check-conflicts", json=body, headers=admin_headers)
    assert response.json() == {"conflicts": []}


def test_check_conflicts_ignores_other_terms_and_placeholder_rooms(client, admin_headers, catalog, schedule_payload):
    create(client, admin_headers, schedule_payload(roomId="TBA"))
    create(client, admin_headers, schedule_payload(academicYear="2024-2025", classSection="B", roomId="R500"))
    body = {
        "academicYear": "2025-2026",
        "semester": 3,
        "departmentId": catalog["department_id"],
        "classSection": "B",
        "day": "MONDAY",
        "startTime": "09:00",
        "endTime": "10:00",
        "teacherId": catalog["teachers"][1]["id"],
        "roomId": "TBA",
    }
    response = client.post("/api/schedule/check-conflicts", json=body, headers=admin_headers)
    assert response.json()["conflicts"] == []


def test_check_conflicts_returns_503_when_schedules_cannot_be_read(
    client, admin_headers, catalog, schedule_payload, monkeypatch
):
    create(client, admin_headers, schedule_payload())

    def broken_read(*args, **kwargs):
        raise OperationalError("SELECT schedules", {}, Exception("database is locked"))

    monkeypatch.setattr(conflict_service, "list_same_day_schedules", broken_read)
    body = {
        "academicYear": "2025-2026",
        "semester": 3,
        "departmentId": catalog["department_id"],
        "classSection": "A",
        "day": "MONDAY",
        "startTime": "09:00",
        "endTime": "10:00",
        "teacherId": catalog["teachers"][0]["id"],
        "roomId": "R101",
    }
    response = client.post("/api/schedule/check-conflicts", json=body, headers=admin_headers)
    assert response.status_code == 503
    assert response.json() == {"message": "Conflict check unavailable, try again later", "details": {}}
    assert "conflicts" not in response.json()


def test_publish_moves_only_drafts_and_reports_count(client, admin_headers, catalog, schedule_payload):
    create(client, admin_headers, schedule_payload())
    create(client, admin_headers, schedule_payload(day="TUESDAY"))
    create(client, admin_headers, schedule_payload(classSection="B"))
    body = scope_params(catalog)

    response = client.post("/api/schedule/publish", json=body, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["count"] == 2

    again = client.post("/api/schedule/publish", json=body, headers=admin_headers)
    assert again.status_code == 404

    listed = client.get("/api/schedule", params=scope_params(catalog, classSection="B"), headers=admin_headers)
    assert [item["status"] for item in listed.json()] == ["DRAFT"]


def test_publish_requires_every_scope_field(client, admin_headers):
    response = client.post("/api/schedule/publish", json={"academicYear": "2025-2026"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "semester"


def test_bulk_delete_is_limited_to_the_exact_scope(client, admin_headers, catalog, schedule_payload):
    create(client, admin_headers, schedule_payload())
    create(client, admin_headers, schedule_payload(day="FRIDAY"))
    create(client, admin_headers, schedule_payload(classSection="B"))
    create(client, admin_headers, schedule_payload(semester=4))

    response = client.request(
        "DELETE", "/api/schedule/bulk-delete", json=scope_params(catalog), headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["count"] == 2

    assert client.get("/api/schedule", params=scope_params(catalog), headers=admin_headers).json() == []
    other_section = client.get("/api/schedule", params=scope_params(catalog, classSection="B"), headers=admin_headers)
    assert len(other_section.json()) == 1
    other_semester = client.get("/api/schedule", params=scope_params(catalog, semester=4), headers=admin_headers)
    assert len(other_semester.json()) == 1


def test_grid_spans_long_classes(client, admin_headers, catalog, schedule_payload):
    short = create(client, admin_headers, schedule_payload(startTime="09:00", endTime="10:00"))
    long = create(client, admin_headers, schedule_payload(day="TUESDAY", startTime="09:00", endTime="11:00"))

    response = client.get("/api/schedule/grid", params=scope_params(catalog), headers=admin_headers)
    assert response.status_code == 200
    grid = response.json()
    assert grid["mode"] == "dynamic"
    assert [(item["startTime"], item["endTime"]) for item in grid["intervals"]] == [
        ("09:00", "10:00"),
        ("10:00", "11:00"),
    ]
    cells = {(cell["day"], cell["intervalIndex"]): cell for cell in grid["cells"]}
    assert cells[("TUESDAY", 0)]["rowSpan"] == 2
    assert cells[("TUESDAY", 0)]["scheduleId"] == long["id"]
    assert ("TUESDAY", 1) not in cells
    assert cells[("MONDAY", 0)]["scheduleId"] == short["id"]
    assert cells[("MONDAY", 1)]["state"] == "empty"


def test_slot_grid_falls_back_to_default_day(client, admin_headers, catalog, schedule_payload):
    create(client, admin_headers, schedule_payload(timeSlotId="slot-1"))
    response = client.get(
        "/api/schedule/grid", params={**scope_params(catalog), "mode": "slots"}, headers=admin_headers
    )
    grid = response.json()
    assert grid["mode"] == "slots"
    assert len(grid["intervals"]) == 7
    breaks = [item for item in grid["intervals"] if item["isBreak"]]
    assert [(item["startTime"], item["endTime"]) for item in breaks] == [("12:00", "12:30")]
    origin = [cell for cell in grid["cells"] if cell["state"] == "origin"]
    assert len(origin) == 1


def test_copy_to_free_cell_creates_entry_without_room(client, admin_headers, catalog, schedule_payload):
    source = create(client, admin_headers, schedule_payload())

    response = client.post(
        f"/api/schedule/{source['id']}/copy",
        json={"day": "WEDNESDAY", "startTime": "09:00", "endTime": "10:00"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    result = response.json()
    assert result["copied"] is True
    assert result["schedule"]["roomId"] == "TBA"
    assert result["schedule"]["day"] == "WEDNESDAY"
    assert result["schedule"]["teacherId"] == source["teacherId"]
    assert result["schedule"]["id"] != source["id"]


def test_copy_onto_same_or_occupied_cell(client, admin_headers, catalog, schedule_payload):
    source = create(client, admin_headers, schedule_payload())
    create(client, admin_headers, schedule_payload(day="TUESDAY", subjectId=catalog["subjects"][1]["id"]))

    same = client.post(
        f"/api/schedule/{source['id']}/copy",
        json={"day": "MONDAY", "startTime": "09:00", "endTime": "10:00"},
        headers=admin_headers,
    )
    assert same.status_code == 200
    assert same.json() == {"copied": False, "schedule": None}

    occupied = client.post(
        f"/api/schedule/{source['id']}/copy",
        json={"day": "TUESDAY", "startTime": "09:00", "endTime": "10:00"},
        headers=admin_headers,
    )
    assert occupied.status_code == 409
    assert occupied.json()["message"] == "This time slot already has a class scheduled"


def test_groups_by_teacher_and_room(client, admin_headers, catalog, schedule_payload):
    create(client, admin_headers, schedule_payload(day="TUESDAY"))
    create(client, admin_headers, schedule_payload())
    create(
        client,
        admin_headers,
        schedule_payload(
            startTime="10:00",
            endTime="11:00",
            subjectId=catalog["subjects"][1]["id"],
            teacherId=catalog["teachers"][1]["id"],
            roomId="LAB1",
        ),
    )

    by_teacher = client.get(
        "/api/schedule/groups", params={**scope_params(catalog), "by": "teacher"}, headers=admin_headers
    ).json()
    assert [group["label"] for group in by_teacher] == ["Dr. Iyer", "Dr. Rao"]
    assert [item["day"] for item in by_teacher[1]["schedules"]] == ["MONDAY", "TUESDAY"]

    by_room = client.get(
        "/api/schedule/groups", params={**scope_params(catalog), "by": "room"}, headers=admin_headers
    ).json()
    assert [group["key"] for group in by_room] == ["LAB1", "R101"]


def test_schedule_endpoints_are_admin_only(client, teacher_headers, catalog, schedule_payload, admin_headers):
    response = client.get("/api/schedule", params=scope_params(catalog), headers=teacher_headers)
    assert response.status_code == 403
    response = client.post("/api/schedule", json=schedule_payload(), headers=teacher_headers)
    assert response.status_code == 403
    response = client.get("/api/schedule", params=scope_params(catalog))
    assert response.status_code == 401


def test_mutations_are_audited(client, admin_headers, schedule_payload):
    created = create(client, admin_headers, schedule_payload())
    client.delete(f"/api/schedule/{created['id']}", headers=admin_headers)

    response = client.get("/api/activity/", params={"entityType": "schedule"}, headers=admin_headers)
    assert response.status_code == 200
    actions = {item["action"] for item in response.json()}
    assert {"schedule.created", "schedule.deleted"} <= actions
    assert all(item["entityId"] == created["id"] for item in response.json())
