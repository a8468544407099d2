"""HTTP and websocket tests for the notification endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from main import create_app

HEADERS = {"X-User-Id": "u1"}


def _payload(**extra) -> dict:
    payload = {
        "userId": "u1",
        "title": "Assignment due",
        "message": "Essay due Friday",
        "type": "assignment_due",
        "category": "academic",
    }
    payload.update(extra)
    return payload


def _receive(websocket, message_type: str) -> dict:
    """Skip other lifecycle pushes until a message of ``message_type`` arrives."""

    while True:
        message = websocket.receive_json()
        if message["type"] == message_type:
            return message


@pytest.fixture
def client(make_service):
    with TestClient(create_app(make_service())) as test_client:
        yield test_client


def test_send_notification_returns_created_record(client: TestClient) -> None:
    response = client.post("/notifications/", json=_payload(channels=["in_app", "email"]))

    assert response.status_code == 201
    body = response.json()
    assert body["user_id"] == "u1"
    assert body["channels"] == ["in_app", "email"]
    assert set(body["delivery_status"]) == {"in_app", "email"}
    assert body["is_read"] is False


def test_validation_errors_name_the_field(client: TestClient) -> None:
    response = client.post("/notifications/", json=_payload(title=""))

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "title"


def test_listing_requires_the_caller_header(client: TestClient) -> None:
    response = client.get("/notifications/")

    assert response.status_code == 401


def test_list_and_unread_count(client: TestClient) -> None:
    client.post("/notifications/", json=_payload())
    client.post("/notifications/", json=_payload(title="Second"))
    client.post("/notifications/", json=_payload(userId="u2"))

    listing = client.get("/notifications/", headers=HEADERS, params={"per_page": 1})
    count = client.get("/notifications/unread-count", headers=HEADERS)

    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 2
    assert body["unread_count"] == 2
    assert len(body["items"]) == 1
    assert count.json() == {"count": 2}


def test_mark_read_and_read_all(client: TestClient) -> None:
    first = client.post("/notifications/", json=_payload()).json()
    client.post("/notifications/", json=_payload(title="Second"))

    read = client.post(f"/notifications/{first['id']}/read", headers=HEADERS)
    assert read.status_code == 200
    assert read.json()["is_read"] is True
    assert read.json()["status"] == "read"

    read_all = client.post("/notifications/read-all", headers=HEADERS)
    assert read_all.json() == {"updated": 1}
    assert client.get("/notifications/unread-count", headers=HEADERS).json() == {"count": 0}


def test_other_users_notifications_are_not_found(client: TestClient) -> None:
    created = client.post("/notifications/", json=_payload()).json()

    response = client.post(f"/notifications/{created['id']}/read", headers={"X-User-Id": "u2"})

    assert response.status_code == 404


def test_delete_notification(client: TestClient) -> None:
    created = client.post("/notifications/", json=_payload()).json()

    deleted = client.delete(f"/notifications/{created['id']}", headers=HEADERS)
    missing = client.delete(f"/notifications/{created['id']}", headers=HEADERS)

    assert deleted.status_code == 204
    assert missing.status_code == 404


def test_bulk_send(client: TestClient) -> None:
    response = client.post(
        "/notifications/bulk",
        json={
            "user_ids": ["u1", "u2", "u3"],
            "notification": {"title": "Holiday", "message": "Closed", "type": "announcement"},
            "batch_size": 2,
            "delay_ms": 0,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["total"], body["success"], body["failed"], body["pending"]) == (3, 3, 0, 0)


def test_bulk_send_with_invalid_payload(client: TestClient) -> None:
    response = client.post(
        "/notifications/bulk",
        json={"user_ids": ["u1"], "notification": {"title": "", "message": "m", "type": "system"}},
    )

    assert response.status_code == 422


def test_broadcast_to_tenant(client: TestClient) -> None:
    response = client.post(
        "/notifications/broadcast",
        json={
            "notification": {"title": "Holiday", "message": "Closed", "type": "announcement"},
            "tenant_id": "t1",
        },
    )

    assert response.json()["total"] == 2


def test_preferences_round_trip(client: TestClient) -> None:
    initial = client.get("/notifications/preferences", headers=HEADERS)
    assert initial.status_code == 200
    assert initial.json()["email_enabled"] is True

    updated = client.put(
        "/notifications/preferences",
        headers=HEADERS,
        json={
            "emailEnabled": False,
            "quietHours": {"enabled": True, "start": "22:00", "end": "07:00", "timezone": "UTC"},
        },
    )

    body = updated.json()
    assert updated.status_code == 200
    assert body["email_enabled"] is False
    assert body["push_enabled"] is True
    assert body["quiet_hours"] == {"enabled": True, "start": "22:00", "end": "07:00", "timezone": "UTC"}


def test_preferences_reject_invalid_clock(client: TestClient) -> None:
    response = client.put(
        "/notifications/preferences",
        headers=HEADERS,
        json={"quietHours": {"enabled": True, "start": "7pm", "end": "07:00"}},
    )

    assert response.status_code == 422


def test_template_lifecycle(client: TestClient) -> None:
    created = client.post(
        "/notification-templates/",
        json={
            "name": "grade-posted",
            "type": "grade_posted",
            "titleTemplate": "New grade in {{course}}",
            "messageTemplate": "You got {{grade}}",
        },
    )
    assert created.status_code == 201
    template = created.json()
    assert template["variables"] == ["course", "grade"]

    sent = client.post(
        f"/notification-templates/{template['id']}/send",
        json={"user_id": "u1", "data": {"course": "Math", "grade": "A"}},
    )
    assert sent.status_code == 201
    assert sent.json()["title"] == "New grade in Math"

    disabled = client.patch(
        f"/notification-templates/{template['id']}/status", json={"active": False}
    )
    assert disabled.json()["active"] is False

    rejected = client.post(
        f"/notification-templates/{template['id']}/send", json={"user_id": "u1", "data": {}}
    )
    assert rejected.status_code == 422
    assert rejected.json()["detail"]["field"] == "templateId"

    assert client.get("/notification-templates/", params={"active_only": True}).json() == []


def test_unknown_template_returns_404(client: TestClient) -> None:
    response = client.post("/notification-templates/missing/send", json={"user_id": "u1"})

    assert response.status_code == 404


def test_websocket_streams_unread_and_new_notifications(client: TestClient) -> None:
    existing = client.post("/notifications/", json=_payload()).json()

    with client.websocket_connect("/notifications/ws?user_id=u1") as websocket:
        init = websocket.receive_json()
        assert init["type"] == "init"
        assert [item["id"] for item in init["data"]] == [existing["id"]]

        websocket.send_json({"type": "ping"})
        assert _receive(websocket, "pong") == {"type": "pong"}

        created = client.post("/notifications/", json=_payload(title="Live")).json()
        pushed = _receive(websocket, "notification")
        assert pushed["data"]["id"] == created["id"]


def test_websocket_ack_marks_notifications_read(client: TestClient) -> None:
    existing = client.post("/notifications/", json=_payload()).json()

    with client.websocket_connect("/notifications/ws?user_id=u1") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "ack", "ids": [existing["id"]]})
        read = _receive(websocket, "notification.read")
        assert read["data"]["is_read"] is True

    assert client.get("/notifications/unread-count", headers=HEADERS).json() == {"count": 0}
