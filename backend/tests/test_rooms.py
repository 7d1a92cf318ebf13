def room(**overrides):
    payload = {"name": "R101", "type": "CLASSROOM", "capacity": 60, "building": "Main Block"}
    payload.update(overrides)
    return payload


def test_room_lifecycle(client, admin_headers):
    created = client.post("/api/rooms/", json=room(name=" R101 "), headers=admin_headers)
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["name"] == "R101"
    assert body["type"] == "CLASSROOM"

    renamed = client.put(f"/api/rooms/{body['id']}", json={"capacity": 72}, headers=admin_headers)
    assert renamed.status_code == 200
    assert renamed.json()["capacity"] == 72
    assert renamed.json()["building"] == "Main Block"

    fetched = client.get(f"/api/rooms/{body['id']}", headers=admin_headers)
    assert fetched.json()["capacity"] == 72

    deleted = client.delete(f"/api/rooms/{body['id']}", headers=admin_headers)
    assert deleted.json() == {"success": True}
    assert client.get(f"/api/rooms/{body['id']}", headers=admin_headers).status_code == 404


def test_room_names_are_unique(client, admin_headers):
    client.post("/api/rooms/", json=room(), headers=admin_headers)
    other = client.post("/api/rooms/", json=room(name="LAB1", type="LAB"), headers=admin_headers).json()

    assert client.post("/api/rooms/", json=room(), headers=admin_headers).status_code == 409
    clash = client.put(f"/api/rooms/{other['id']}", json={"name": "R101"}, headers=admin_headers)
    assert clash.status_code == 409


def test_rooms_are_listed_by_type_then_name(client, admin_headers, student_headers):
    client.post("/api/rooms/", json=room(name="R202"), headers=admin_headers)
    client.post("/api/rooms/", json=room(name="LAB2", type="LAB"), headers=admin_headers)
    client.post("/api/rooms/", json=room(name="R101"), headers=admin_headers)

    response = client.get("/api/rooms/", headers=student_headers)
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["R101", "R202", "LAB2"]


def test_only_admins_manage_rooms(client, teacher_headers):
    assert client.post("/api/rooms/", json=room(), headers=teacher_headers).status_code == 403


def test_placeholder_name_is_reserved(client, admin_headers):
    response = client.post("/api/rooms/", json=room(name="tba"), headers=admin_headers)
    assert response.status_code == 422


def test_rooms_can_be_filtered_by_type(client, admin_headers):
    client.post("/api/rooms/", json=room(), headers=admin_headers)
    client.post("/api/rooms/", json=room(name="LAB1", type="LAB"), headers=admin_headers)
    labs = client.get("/api/rooms/", params={"type": "LAB"}, headers=admin_headers).json()
    assert [item["name"] for item in labs] == ["LAB1"]
