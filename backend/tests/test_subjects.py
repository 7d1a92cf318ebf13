import io

import pandas as pd


def test_crud_round(client, admin_headers, catalog):
    created = client.post(
        "/api/subjects/",
        json={
            "name": "Compiler Design",
            "code": " cs401 ",
            "category": "Elective",
            "semester": 7,
            "departmentId": catalog["department_id"],
        },
        headers=admin_headers,
    )
    assert created.status_code == 201, created.text
    subject = created.json()
    assert subject["code"] == "CS401"
    assert subject["category"] == "elective"
    assert subject["departmentName"] == "Computer Science"

    updated = client.patch(
        f"/api/subjects/{subject['id']}", json={"name": "Compilers", "semester": 6}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Compilers"
    assert updated.json()["semester"] == 6
    assert updated.json()["code"] == "CS401"

    deleted = client.delete(f"/api/subjects/{subject['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/subjects/{subject['id']}", headers=admin_headers).status_code == 404


def test_create_validates_department_and_code(client, admin_headers, catalog):
    missing_department = client.post(
        "/api/subjects/",
        json={"name": "Thermo", "code": "ME101", "semester": 1, "departmentId": "nope"},
        headers=admin_headers,
    )
    assert missing_department.status_code == 404

    duplicate = client.post(
        "/api/subjects/",
        json={"name": "Another", "code": "cs201", "semester": 1, "departmentId": catalog["department_id"]},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["details"] == {"field": "code"}


def test_list_filters_by_department(client, admin_headers, catalog):
    other = client.post("/api/departments/", json={"name": "Electrical", "code": "EEE"}, headers=admin_headers).json()
    client.post(
        "/api/subjects/",
        json={"name": "Circuits", "code": "EE101", "semester": 1, "departmentId": other["id"]},
        headers=admin_headers,
    )

    everything = client.get("/api/subjects/", headers=admin_headers).json()
    assert len(everything) == 3
    filtered = client.get(
        "/api/subjects/", params={"departmentId": catalog["department_id"]}, headers=admin_headers
    ).json()
    assert [item["code"] for item in filtered] == ["CS201", "CS301"]


def test_delete_blocked_when_subject_is_taught(client, admin_headers, catalog):
    subject_id = catalog["subjects"][0]["id"]
    response = client.delete(f"/api/subjects/{subject_id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["details"]["counts"] == {"schedules": 0, "teachers": 1}


def test_template_download(client, admin_headers):
    response = client.get("/api/subjects/import/template", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "subjects_template.csv" in response.headers["content-disposition"]
    assert response.text.splitlines()[0] == "Subject Name,Subject Code,Category,Year,Semester"


def test_csv_import_creates_rows_and_reports_failures(client, admin_headers, catalog):
    sheet = (
        "Subject Name,Subject Code,Category,Year,Semester\n"
        "Computer Networks,CS302,core,2,4\n"
        "Duplicate,cs201,core,2,3\n"
        "Bad Semester,CS999,lab,5,11\n"
        ",,,,\n"
        "Machine Learning,CS405,elective,4,7\n"
    )
    response = client.post(
        "/api/subjects/import",
        params={"departmentCode": "cse"},
        files={"file": ("subjects.csv", sheet.encode(), "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    result = response.json()
    assert result["created"] == 2
    assert result["failed"] == 2
    assert {(item["row"], item["code"], item["error"]) for item in result["errors"]} == {
        (3, "CS201", "Subject code already exists"),
        (4, "CS999", "Semester must be a number between 1 and 8"),
    }
    assert sorted(item["code"] for item in result["subjects"]) == ["CS302", "CS405"]
    assert all(item["departmentName"] == "Computer Science" for item in result["subjects"])


def test_xlsx_import(client, admin_headers, catalog):
    frame = pd.DataFrame(
        [["Digital Logic", "CS210", "core", 2, 3], ["Logic Lab", "CS211", "lab", 2, 3]],
        columns=["Subject Name", "Subject Code", "Category", "Year", "Semester"],
    )
    buffer = io.BytesIO()
    frame.to_excel(buffer, index=False, engine="openpyxl")

    response = client.post(
        "/api/subjects/import",
        params={"departmentCode": "CSE"},
        files={
            "file": (
                "subjects.xlsx",
                buffer.getvalue(),
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    result = response.json()
    assert result["created"] == 2
    assert {item["semester"] for item in result["subjects"]} == {3}


def test_import_rejects_legacy_and_unknown_files(client, admin_headers, catalog):
    legacy = client.post(
        "/api/subjects/import",
        params={"departmentCode": "cse"},
        files={"file": ("subjects.xls", b"\xd0\xcf\x11\xe0", "application/vnd.ms-excel")},
        headers=admin_headers,
    )
    assert legacy.status_code == 400
    assert ".xlsx" in legacy.json()["message"]

    text = client.post(
        "/api/subjects/import",
        params={"departmentCode": "cse"},
        files={"file": ("subjects.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )
    assert text.status_code == 400


def test_import_rejects_unknown_categories_before_writing(client, admin_headers, catalog):
    sheet = "Subject Name,Subject Code,Category,Year,Semester\nArt,AR101,hobby,1,1\nMath,MA101,core,1,1\n"
    response = client.post(
        "/api/subjects/import",
        params={"departmentCode": "cse"},
        files={"file": ("subjects.csv", sheet.encode(), "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"]["invalidCategories"] == ["hobby"]
    codes = [item["code"] for item in client.get("/api/subjects/", headers=admin_headers).json()]
    assert "MA101" not in codes


def test_import_needs_a_known_department_and_rows(client, admin_headers, catalog):
    sheet = b"Subject Name,Subject Code,Category,Year,Semester\n"
    unknown = client.post(
        "/api/subjects/import",
        params={"departmentCode": "XYZ"},
        files={"file": ("subjects.csv", sheet, "text/csv")},
        headers=admin_headers,
    )
    assert unknown.status_code == 404

    empty = client.post(
        "/api/subjects/import",
        params={"departmentCode": "cse"},
        files={"file": ("subjects.csv", sheet, "text/csv")},
        headers=admin_headers,
    )
    assert empty.status_code == 400
    assert empty.json()["message"] == "No subject rows found"


def test_bulk_json_rows_are_numbered_from_one(client, admin_headers, catalog):
    response = client.post(
        "/api/subjects/bulk",
        json={
            "departmentCode": "cse",
            "subjects": [
                {"name": "Graphics", "code": "CS330", "category": "elective", "year": 3, "semester": 5},
                {"name": "Dup", "code": "CS301", "category": "core", "year": "2", "semester": "3"},
            ],
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    result = response.json()
    assert result["created"] == 1
    assert result["errors"] == [{"row": 2, "code": "CS301", "error": "Subject code already exists"}]


def test_teachers_can_read_but_not_write(client, teacher_headers, catalog):
    assert client.get("/api/subjects/", headers=teacher_headers).status_code == 200
    response = client.post(
        "/api/subjects/",
        json={"name": "X", "code": "X1", "semester": 1, "departmentId": catalog["department_id"]},
        headers=teacher_headers,
    )
    assert response.status_code == 403
