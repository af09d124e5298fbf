from __future__ import annotations

import io

import pytest

from workforce_sync.core.enums import SyncType
from workforce_sync.main import create_app


@pytest.fixture()
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("AUTO_INIT_DB", "0")
    app = create_app(container)
    return app.test_client()


def test_page_run_is_wrapped_in_the_envelope(client, replica, make_record):
    replica.records = [make_record("E001"), make_record("E002")]

    res = client.post("/api/sync/replica/page", json={"offset": 0, "limit": 1}, headers={"X-Actor-Id": "admin-1"})

    assert res.status_code == 200
    body = res.get_json()
    assert body["success"] is True
    assert body["data"]["counts"]["created"] == 1
    assert body["data"]["hasMore"] is True
    assert body["data"]["passId"] == "pass-1"


def test_full_sync_walks_every_page(client, replica, workers, make_record):
    replica.records = [make_record(f"E{i:03d}") for i in range(1, 6)]

    res = client.post("/api/sync/replica/full", json={"limit": 2})

    data = res.get_json()["data"]
    assert res.status_code == 200
    assert data["pages"] == 3
    assert data["created"] == 5
    assert len(workers.rows) == 5


def test_held_guard_rejects_a_second_run(client, container):
    with container.sync_guard.hold():
        res = client.post("/api/sync/replica/page", json={})

    assert res.status_code == 409
    assert res.get_json()["error"]["code"] == "SYNC_IN_PROGRESS"


def test_non_object_body_is_a_validation_error(client):
    res = client.post("/api/sync/replica/page", json=[1, 2])

    assert res.status_code == 400
    assert res.get_json() == {
        "success": False,
        "error": {"code": "VALIDATION_ERROR", "message": "request body must be a JSON object"},
    }


def test_unreadable_snapshot_is_422(client):
    res = client.post(
        "/api/sync/snapshot",
        data=b"definitely not sqlite" * 10,
        content_type="application/octet-stream",
    )

    assert res.status_code == 422
    assert res.get_json()["error"]["code"] == "INVALID_SNAPSHOT"


def test_snapshot_upload_and_summary(client, workers, make_snapshot):
    data = make_snapshot([("E001", "김철수", "한일건설", None, None, "2024-03-01 08:00:00")])

    summary = client.post(
        "/api/sync/snapshot/summary",
        data={"file": (io.BytesIO(data), "terminal.db3")},
        content_type="multipart/form-data",
    )
    run = client.post(
        "/api/sync/snapshot",
        data={"file": (io.BytesIO(data), "terminal.db3")},
        content_type="multipart/form-data",
    )

    assert summary.status_code == 200
    assert summary.get_json()["data"]["total"] == 1
    assert run.status_code == 200
    assert run.get_json()["data"]["counts"]["created"] == 1
    assert workers.by_external("E001").name == "김철수"


def test_missing_snapshot_is_rejected(client):
    res = client.post("/api/sync/snapshot")

    assert res.status_code == 400


def test_attendance_batch_requires_an_array(client):
    res = client.post("/api/attendance/batch", json={"events": {"externalWorkerId": "E001"}})

    assert res.status_code == 400
    assert res.get_json()["error"]["message"] == "events must be an array"


def test_attendance_batch_reports_per_event(client, workers):
    workers.add(external_worker_id="E001", name="김철수")
    events = [
        {"externalWorkerId": "E001", "siteId": "SITE-1", "checkinAt": "2024-03-15T07:30:00+09:00"},
        {"externalWorkerId": "E404", "siteId": "SITE-1", "checkinAt": "2024-03-15T07:31:00+09:00"},
        {"externalWorkerId": "E001", "checkinAt": "2024-03-15T07:32:00+09:00"},
    ]

    res = client.post("/api/attendance/batch", json={"events": events})

    data = res.get_json()["data"]
    assert res.status_code == 200
    assert (data["processed"], data["inserted"], data["unmatched"], data["failed"]) == (3, 1, 1, 1)
    assert data["results"][2]["errorCode"] == "MISSING_SITE_ID"


def test_attendance_read_endpoints(client):
    today = client.get("/api/attendance/today?siteId=SITE-1&limit=10").get_json()["data"]
    present = client.get("/api/attendance/present/7").get_json()["data"]
    unmatched = client.get("/api/attendance/unmatched").get_json()["data"]

    assert today["presentCount"] == 0
    assert set(today["window"]) == {"start", "end"}
    assert present == {"userId": 7, "present": False}
    assert unmatched["items"] == []


def test_sync_error_lifecycle_over_http(client, container):
    error_id = container.sync_error_service.record(
        SyncType.WORKER,
        error_code="MISSING_NAME",
        error_message="name is empty",
    )

    listed = client.get("/api/sync-errors?status=OPEN").get_json()["data"]
    resolved = client.patch(f"/api/sync-errors/{error_id}", json={"status": "RESOLVED", "retry": "increment"})
    again = client.patch("/api/sync-errors", json={"id": error_id, "status": "IGNORED"})
    missing = client.patch("/api/sync-errors", json={"id": 999, "status": "IGNORED"})

    assert [e["id"] for e in listed["items"]] == [error_id]
    assert resolved.status_code == 200
    assert resolved.get_json()["data"]["status"] == "RESOLVED"
    assert resolved.get_json()["data"]["retryCount"] == 1
    assert again.status_code == 409
    assert again.get_json()["error"]["code"] == "INVALID_TRANSITION"
    assert missing.status_code == 404


def test_status_and_search(client, replica, workers, make_record):
    workers.add(external_worker_id="E001", name="김철수", phone=None)
    replica.records = [make_record("E001", name="김철수", phone="01011112222")]

    status = client.get("/api/sync/status").get_json()["data"]
    found = client.get("/api/sync/search?phone=010-1111-2222").get_json()["data"]
    empty = client.get("/api/sync/search")

    assert status["userStats"] == {"total": 1, "linked": 1, "missingPhone": 1, "deleted": 0}
    assert status["lastFullSync"] is None
    assert found["query"] == {"name": None, "phone": "01011112222"}
    assert [r["externalWorkerId"] for r in found["results"]] == ["E001"]
    assert "nationalIdPrefix" not in found["results"][0]
    assert empty.status_code == 400
