from __future__ import annotations

import io

import pytest

from src.farm_workflow.farm_workflow.attendance.service import AttendanceService
from src.farm_workflow.farm_workflow.container import Container
from src.farm_workflow.farm_workflow.main import create_app
from src.farm_workflow.farm_workflow.submissions.photo_store import PhotoStore
from src.farm_workflow.farm_workflow.submissions.service import SubmissionService
from src.farm_workflow.farm_workflow.tasks.service import TaskService
from src.farm_workflow.farm_workflow.users.service import AuthService


@pytest.fixture
def client(monkeypatch, tmp_path, users_repo, tasks_repo, submissions_repo, attendance_repo):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path))
    container = Container(
        auth_service=AuthService(users_repo, jwt_secret="test-jwt-secret"),
        task_service=TaskService(tasks_repo),
        submission_service=SubmissionService(submissions_repo, tasks_repo, PhotoStore(tmp_path)),
        attendance_service=AttendanceService(attendance_repo, users_repo),
    )
    app = create_app(container)
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(user_id: str) -> dict:
        resp = client.post("/api/auth/login", json={"email": f"{user_id}@farm.local", "password": "secret123"})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['data']['accessToken']}"}

    return _login


def test_login_and_me(client, login):
    headers = login("worker")
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["role"] == "field_worker"


def test_bad_login_is_401(client):
    resp = client.post("/api/auth/login", json={"email": "worker@farm.local", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Invalid email or password"}


def test_inactive_user_cannot_login(client):
    resp = client.post("/api/auth/login", json={"email": "gone@farm.local", "password": "secret123"})
    assert resp.status_code == 401


def test_missing_token_is_401(client):
    assert client.get("/api/tasks/my-tasks").status_code == 401
    resp = client.get("/api/tasks/my-tasks", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


def test_role_check_is_403(client, login):
    resp = client.get("/api/task-submissions/submissions/all", headers=login("worker"))
    assert resp.status_code == 403


def test_request_id_is_echoed(client):
    resp = client.get("/api/auth/me", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert client.get("/api/auth/me").headers.get("X-Request-ID")


def test_my_tasks(client, login):
    resp = client.get("/api/tasks/my-tasks", headers=login("worker"))
    body = resp.get_json()
    assert body["success"] is True
    assert {t["id"] for t in body["data"]["tasks"]} == {"t1", "t2", "t4"}
    assert body["data"]["statistics"]["total"] == 3


def test_task_status_patch(client, login):
    resp = client.patch("/api/tasks/t1/status", json={"status": "in_progress"}, headers=login("worker"))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "in_progress"


def test_submit_review_cycle(client, login, png_bytes):
    worker, manager = login("worker"), login("manager")

    resp = client.post(
        "/api/task-submissions/t1/submit",
        data={"notes": "all rows watered", "photo": (io.BytesIO(png_bytes), "rows.png")},
        headers=worker,
        content_type="multipart/form-data",
    )
    assert resp.status_code == 201
    sid = resp.get_json()["data"]["submissionId"]

    again = client.post("/api/task-submissions/t1/submit", data={"notes": "again"}, headers=worker)
    assert again.status_code == 409
    assert again.get_json()["success"] is False

    listed = client.get("/api/task-submissions/t1/submissions", headers=worker).get_json()["data"]
    assert [s["id"] for s in listed] == [sid]
    assert listed[0]["photo_url"].startswith("/uploads/task-submissions/")

    review = client.patch(
        f"/api/task-submissions/submissions/{sid}/review",
        json={"status": "rejected", "reviewNotes": "row 3 is dry"},
        headers=manager,
    )
    assert review.status_code == 200
    assert review.get_json()["data"]["status"] == "rejected"

    second = client.patch(
        f"/api/task-submissions/submissions/{sid}/review",
        json={"status": "approved"},
        headers=manager,
    )
    assert second.status_code == 409

    queue = client.get("/api/task-submissions/submissions/all", headers=manager).get_json()["data"]
    assert queue[0]["review_notes"] == "row 3 is dry"


def test_submit_without_notes_is_400(client, login):
    resp = client.post("/api/task-submissions/t1/submit", data={"notes": " "}, headers=login("worker"))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Notes is required"


def test_oversized_upload_is_413(client, login):
    big = io.BytesIO(b"x" * (5 * 1024 * 1024 + 100 * 1024))
    resp = client.post(
        "/api/task-submissions/t1/submit",
        data={"notes": "big", "photo": (big, "big.jpg")},
        headers=login("worker"),
        content_type="multipart/form-data",
    )
    assert resp.status_code == 413
    assert resp.get_json()["success"] is False


def test_attendance_clock_in_out(client, login):
    worker = login("worker")
    first = client.post("/api/attendance", json={"date": "2026-03-02", "status": "present", "clockIn": "07:30:00"}, headers=worker)
    assert first.status_code == 201
    second = client.post("/api/attendance", json={"date": "2026-03-02", "status": "present", "clockOut": "16:00:00"}, headers=worker)
    assert second.status_code == 200

    mine = client.get(
        "/api/attendance/my-attendance",
        query_string={"startDate": "2026-03-01", "endDate": "2026-03-31"},
        headers=worker,
    ).get_json()["data"]
    assert mine["records"][0]["clock_in"] == "07:30:00"
    assert mine["records"][0]["clock_out"] == "16:00:00"
    assert mine["statistics"]["present"] == 1


def test_attendance_listing_is_for_managers(client, login):
    assert client.get("/api/attendance", headers=login("worker")).status_code == 403
    resp = client.get("/api/attendance", query_string={"startDate": "2026-03-02"}, headers=login("manager"))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["statistics"]["totalRecords"] == 0


def test_bulk_and_summary(client, login):
    manager = login("manager")
    resp = client.post(
        "/api/attendance/bulk",
        json={
            "date": "2026-03-02",
            "attendanceRecords": [
                {"userId": "worker", "status": "present"},
                {"userId": "outsider", "status": "present"},
            ],
        },
        headers=manager,
    )
    assert resp.get_json()["data"] == {"success": 1, "failed": 1, "failedUsers": ["outsider"]}

    summary = client.get(
        "/api/attendance/summary",
        query_string={"workerId": "worker", "month": 3, "year": 2026},
        headers=manager,
    ).get_json()["data"]
    assert summary["statistics"]["attendanceRate"] == 100
