"""Tests for the conversation, message and admin HTTP endpoints."""


def test_list_conversations_empty(client, staff, auth):
    response = client.get("/api/conversations", headers=auth(staff["ana"]))
    assert response.status_code == 200
    assert response.json() == []


def test_identity_headers_are_required(client, staff):
    assert client.get("/api/conversations").status_code == 422
    response = client.get("/api/conversations", headers={"X-Actor-Id": "7", "X-Actor-Type": "chef"})
    assert response.status_code == 422


def test_private_round_trip(client, staff, auth, dispatcher):
    ana, admin = auth(staff["ana"]), auth(staff["admin"])

    response = client.post("/api/messages/private", json={"recipient_id": "admin", "content": "hello"}, headers=ana)
    assert response.status_code == 201
    sent = response.json()
    cid = sent["conversationId"]
    assert sent["senderName"] == "Ana Lopez"

    [admin_view] = client.get("/api/conversations", headers=admin).json()
    assert admin_view["id"] == cid
    assert admin_view["unreadCount"] == 1
    assert client.get("/api/conversations", headers=ana).json()[0]["unreadCount"] == 0

    response = client.post(f"/api/conversations/{cid}/messages", json={"content": "hi"}, headers=admin)
    assert response.status_code == 201
    assert client.get("/api/conversations", headers=ana).json()[0]["unreadCount"] == 1

    response = client.post(f"/api/conversations/{cid}/read", headers=ana)
    assert response.json() == {"id": cid, "status": "read"}
    assert client.get("/api/conversations", headers=ana).json()[0]["unreadCount"] == 0
    assert client.get("/api/conversations", headers=admin).json()[0]["unreadCount"] == 1

    history = client.get(f"/api/conversations/{cid}/messages", headers=ana).json()
    assert [m["content"] for m in history] == ["hello", "hi"]
    assert [n.message_id for n in dispatcher.sent] == [m["id"] for m in history]


def test_get_or_create_private(client, staff, auth):
    body = {"participant_id": "8"}
    first = client.post("/api/conversations/private", json=body, headers=auth(staff["ana"])).json()
    second = client.post("/api/conversations/private", json=body, headers=auth(staff["ana"])).json()

    assert first["created"] is True
    assert second["created"] is False
    assert first["id"] == second["id"]
    assert first["type"] == "private"


def test_send_private_by_path(client, staff, auth):
    response = client.post(
        "/api/conversations/private/admin/messages",
        json={"content": "running late"},
        headers=auth(staff["ben"]),
    )
    assert response.status_code == 201
    assert response.json()["conversationId"] is not None


def test_invalid_participant(client, staff, auth):
    response = client.post(
        "/api/conversations/private", json={"participant_id": "404"}, headers=auth(staff["ana"])
    )
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_participant"


def test_non_participant_is_forbidden(client, staff, auth):
    cid = client.post(
        "/api/conversations/private", json={"participant_id": "admin"}, headers=auth(staff["ana"])
    ).json()["id"]

    response = client.post(f"/api/conversations/{cid}/messages", json={"content": "hi"}, headers=auth(staff["ben"]))
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"

    response = client.get(f"/api/conversations/{cid}/messages", headers=auth(staff["ben"]))
    assert response.status_code == 403


def test_missing_conversation(client, staff, auth):
    headers = auth(staff["ana"])
    assert client.post("/api/conversations/999/messages", json={"content": "hi"}, headers=headers).status_code == 404
    response = client.post("/api/conversations/999/read", headers=headers)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_empty_message_is_rejected(client, staff, auth):
    response = client.post(
        "/api/messages/private", json={"recipient_id": "admin", "content": "   "}, headers=auth(staff["ana"])
    )
    assert response.status_code == 422


def test_attachment_only_message(client, staff, auth):
    response = client.post(
        "/api/messages/private",
        json={"recipient_id": "admin", "attachments": [{"path": "shift.png", "mimeType": "image/png", "size": 10}]},
        headers=auth(staff["ana"]),
    )
    assert response.status_code == 201
    assert response.json()["hasAttachments"] is True


def test_create_group_requires_admin(client, staff, auth):
    body = {"name": "Kitchen", "employee_ids": [7, 8]}

    response = client.post("/api/conversations/group", json=body, headers=auth(staff["ana"]))
    assert response.status_code == 403

    response = client.post("/api/conversations/group", json=body, headers=auth(staff["admin"]))
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Kitchen"
    assert data["type"] == "group"
    assert sorted(data["members"]) == ["1", "7", "8"]


def test_group_messaging_and_stats(client, staff, auth):
    cid = client.post(
        "/api/conversations/group", json={"name": "Floor", "employee_ids": [7, 8]}, headers=auth(staff["admin"])
    ).json()["id"]

    response = client.post(
        "/api/messages/group", json={"conversation_id": cid, "content": "Doors at 5"}, headers=auth(staff["ben"])
    )
    assert response.status_code == 201

    stats = client.get(f"/api/conversations/{cid}/stats", headers=auth(staff["ana"])).json()
    assert stats["totalMessages"] == 1
    assert stats["participantsCount"] == 3


def test_group_endpoint_rejects_private_conversation(client, staff, auth):
    cid = client.post(
        "/api/conversations/private", json={"participant_id": "admin"}, headers=auth(staff["ana"])
    ).json()["id"]

    response = client.post(
        "/api/messages/group", json={"conversation_id": cid, "content": "hi"}, headers=auth(staff["ana"])
    )
    assert response.status_code == 404


def test_add_participants(client, staff, auth):
    admin = auth(staff["admin"])
    cid = client.post("/api/conversations/group", json={"name": "Bar", "employee_ids": [7]}, headers=admin).json()["id"]

    response = client.post(f"/api/conversations/{cid}/participants", json={"employee_ids": [7, 9]}, headers=admin)
    assert response.status_code == 200
    assert response.json() == {"id": cid, "added": ["9"]}

    assert [c["id"] for c in client.get("/api/conversations", headers=auth(staff["cara"])).json()] == [cid]


def test_add_participants_to_private_conversation_conflicts(client, staff, auth):
    cid = client.post(
        "/api/conversations/private", json={"participant_id": "7"}, headers=auth(staff["admin"])
    ).json()["id"]

    response = client.post(
        f"/api/conversations/{cid}/participants", json={"employee_ids": [8]}, headers=auth(staff["admin"])
    )
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_employee_conversation_monitoring(client, staff, auth):
    client.post("/api/messages/private", json={"recipient_id": "8", "content": "cover my shift?"}, headers=auth(staff["ana"]))

    assert client.get("/api/admin/employee-conversations", headers=auth(staff["ana"])).status_code == 403

    [view] = client.get("/api/admin/employee-conversations", headers=auth(staff["admin"])).json()
    assert view["participantNames"] == "Ana Lopez & Ben Okafor"
    assert view["lastMessage"] == "cover my shift?"
    assert view["messageCount"] == 1


def test_admin_reads_employee_thread(client, staff, auth):
    cid = client.post(
        "/api/messages/private", json={"recipient_id": "9", "content": "swap Friday?"}, headers=auth(staff["ana"])
    ).json()["conversationId"]
    path = f"/api/admin/employee-conversations/{cid}/messages"

    assert client.get(path, headers=auth(staff["ana"])).status_code == 403

    response = client.get(path, headers=auth(staff["admin"]))
    assert response.status_code == 200
    thread = response.json()
    assert thread["messageCount"] == 1
    assert thread["messages"][0]["content"] == "swap Friday?"

    response = client.get("/api/admin/employee-conversations/999/messages", headers=auth(staff["admin"]))
    assert response.status_code == 404
