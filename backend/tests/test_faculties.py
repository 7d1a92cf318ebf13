def test_created_faculty_carries_subjects_and_department(client, admin_headers, catalog):
    teacher = catalog["teachers"][0]
    assert teacher["facultyId"] == "FAC001"
    assert teacher["email"] == "rao@example.com"
    assert teacher["departmentName"] == "Computer Science"
    assert teacher["designations"] == ["Assistant Professor"]
    assert [item["code"] for item in teacher["subjects"]] == ["CS201"]

    response = client.get("/api/faculties/by-faculty-id/FAC002", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Dr. Iyer"


def test_create_rejects_duplicates_and_unknown_subjects(client, admin_headers, catalog):
    base = {
        "facultyId": "FAC010",
        "name": "Dr. Das",
        "email": "das@example.com",
        "departmentId": catalog["department_id"],
    }
    taken_email = client.post("/api/faculties/", json={**base, "email": "RAO@example.com"}, headers=admin_headers)
    assert taken_email.status_code == 409
    assert taken_email.json()["details"] == {"field": "email"}

    taken_id = client.post("/api/faculties/", json={**base, "facultyId": "FAC001"}, headers=admin_headers)
    assert taken_id.status_code == 409
    assert taken_id.json()["details"] == {"field": "facultyId"}

    unknown_subject = client.post("/api/faculties/", json={**base, "subjectIds": ["ghost"]}, headers=admin_headers)
    assert unknown_subject.status_code == 404

    unknown_department = client.post(
        "/api/faculties/", json={**base, "departmentId": "ghost"}, headers=admin_headers
    )
    assert unknown_department.status_code == 404


def test_update_replaces_subject_set(client, admin_headers, catalog):
    teacher = catalog["teachers"][0]
    response = client.put(
        f"/api/faculties/{teacher['id']}",
        json={
            "name": "Dr. K. Rao",
            "departmentId": catalog["department_id"],
            "phone": " 98765 ",
            "subjectIds": [item["id"] for item in catalog["subjects"]],
            "designations": ["Professor", "professor", "HOD"],
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["name"] == "Dr. K. Rao"
    assert body["phone"] == "98765"
    assert body["facultyId"] == "FAC001"
    assert body["designations"] == ["Professor", "HOD"]
    assert sorted(item["code"] for item in body["subjects"]) == ["CS201", "CS301"]

    untouched = client.put(
        f"/api/faculties/{teacher['id']}",
        json={"name": "Dr. K. Rao", "departmentId": catalog["department_id"]},
        headers=admin_headers,
    )
    assert len(untouched.json()["subjects"]) == 2


def test_list_filters_by_department(client, admin_headers, catalog):
    everyone = client.get("/api/faculties/", headers=admin_headers).json()
    assert [item["name"] for item in everyone] == ["Dr. Iyer", "Dr. Rao"]
    assert client.get("/api/faculties/", params={"departmentId": "other"}, headers=admin_headers).json() == []


def test_delete_is_blocked_while_teacher_has_classes(client, admin_headers, catalog, schedule_payload):
    busy = catalog["teachers"][0]
    client.post("/api/schedule", json=schedule_payload(), headers=admin_headers)
    blocked = client.delete(f"/api/faculties/{busy['id']}", headers=admin_headers)
    assert blocked.status_code == 409
    assert blocked.json()["details"]["counts"] == {"schedules": 1}

    free = catalog["teachers"][1]
    deleted = client.delete(f"/api/faculties/{free['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/faculties/{free['id']}", headers=admin_headers).status_code == 404

    # The login account is removed too, so the email is free again.
    recreated = client.post(
        "/api/faculties/",
        json={
            "facultyId": "FAC002",
            "name": "Dr. Iyer",
            "email": "iyer@example.com",
            "departmentId": catalog["department_id"],
        },
        headers=admin_headers,
    )
    assert recreated.status_code == 201


def test_faculty_accounts_cannot_log_in_without_a_password(client, catalog):
    response = client.post("/api/auth/login", json={"email": "rao@example.com", "password": "whatever123"})
    assert response.status_code == 401
