from __future__ import annotations

import json
from datetime import date, time

import httpx
import pytest

from src.farm_workflow.farm_workflow.auth.guard import AuthGuard
from src.farm_workflow.farm_workflow.auth.session import ClientSession, SessionStore
from src.farm_workflow.farm_workflow.auth.tokens import issue_access_token
from src.farm_workflow.farm_workflow.client.api import FarmApiClient
from src.farm_workflow.farm_workflow.core.enums import AttendanceStatus, Role, SubmissionStatus
from src.farm_workflow.farm_workflow.core.exceptions import (
    AuthenticationError,
    AuthExpired,
    ConflictError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from src.farm_workflow.farm_workflow.submissions.model import PhotoUpload

BASE = "http://farm.test/api"


def _fresh_token():
    return issue_access_token(user_id="w1", email="w@farm.local", role="field_worker", secret="s")


def _ok(data, status=200):
    return httpx.Response(status, json={"success": True, "data": data})


def _fail(message, status):
    return httpx.Response(status, json={"success": False, "message": message})


def _client(handler, *, session=True, on_expired=None):
    store = SessionStore(ClientSession(access_token=_fresh_token(), role=Role.WORKER, user_id="w1") if session else None)
    guard = AuthGuard(store, on_expired)
    return FarmApiClient(BASE, guard, transport=httpx.MockTransport(handler)), store


def test_login_stores_session():
    def handler(request):
        assert request.url.path == "/api/auth/login"
        assert json.loads(request.content) == {"email": "w@farm.local", "password": "pw"}
        return _ok({"accessToken": "tok", "user": {"id": "w1", "role": "field_worker", "email": "w@farm.local", "full_name": "W"}})

    api, store = _client(handler, session=False)
    session = api.login("w@farm.local", "pw")
    assert session.role == Role.WORKER
    assert store.get().access_token == "tok"


def test_login_bad_credentials():
    api, _ = _client(lambda r: _fail("Invalid email or password", 401), session=False)
    with pytest.raises(AuthenticationError):
        api.login("w@farm.local", "nope")


def test_requests_carry_bearer_token_and_unwrap_envelope():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        return _ok({"tasks": [{"id": "t1", "title": "Irrigate", "status": "pending", "due_date": "2026-03-05"}], "statistics": {}})

    api, store = _client(handler)
    tasks = api.my_tasks()
    assert seen["auth"] == f"Bearer {store.get().access_token}"
    assert tasks[0].task_id == "t1"
    assert tasks[0].due_date == date(2026, 3, 5)


def test_401_clears_session_and_hands_off():
    redirects = []
    api, store = _client(lambda r: _fail("Token expired", 401), on_expired=redirects.append)
    with pytest.raises(AuthExpired):
        api.task_submissions("t1")
    assert store.get() is None
    assert redirects == ["/login"]


def test_no_request_is_sent_with_expired_session():
    calls = []
    api, _ = _client(lambda r: calls.append(r) or _ok([]), session=False)
    with pytest.raises(AuthExpired):
        api.all_submissions()
    assert calls == []


@pytest.mark.parametrize(
    "status, error",
    [(400, ValidationError), (404, NotFoundError), (409, ConflictError), (413, ValidationError), (502, NetworkError)],
)
def test_status_codes_map_to_errors(status, error):
    api, _ = _client(lambda r: _fail("nope", status))
    with pytest.raises(error):
        api.task_submissions("t1")


def test_transport_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    api, store = _client(handler)
    with pytest.raises(NetworkError):
        api.my_tasks()
    assert store.get() is not None


def test_submit_task_sends_multipart():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["type"] = request.headers["Content-Type"]
        seen["body"] = request.read()
        return _ok({"submissionId": "s9"}, status=201)

    api, _ = _client(handler)
    sid = api.submit_task("t1", "done", PhotoUpload("field.jpg", b"\xff\xd8jpeg", "image/jpeg"))

    assert sid == "s9"
    assert seen["path"] == "/api/task-submissions/t1/submit"
    assert seen["type"].startswith("multipart/form-data")
    assert b'name="notes"' in seen["body"]
    assert b'filename="field.jpg"' in seen["body"]


def test_review_submission_body():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["json"] = json.loads(request.content)
        return _ok({})

    api, _ = _client(handler)
    api.review_submission("s1", SubmissionStatus.REJECTED, "redo")
    assert seen == {"method": "PATCH", "json": {"status": "rejected", "reviewNotes": "redo"}}


def test_attendance_query_and_parse():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return _ok(
            {
                "records": [
                    {"id": "a1", "user_id": "w1", "attendance_date": "2026-03-02", "status": "present", "clock_in": "07:30:00"}
                ],
                "statistics": {"totalRecords": 1, "present": 1, "absent": 0, "halfDay": 0, "late": 0},
            }
        )

    api, _ = _client(handler)
    records, stats = api.attendance(date(2026, 3, 2), date(2026, 3, 2), worker_id="w1")
    assert seen["params"] == {"startDate": "2026-03-02", "endDate": "2026-03-02", "workerId": "w1"}
    assert records[0].clock_in == time(7, 30)
    assert stats.present == 1


def test_mark_attendance_omits_missing_clock_fields():
    seen = {}

    def handler(request):
        seen["json"] = json.loads(request.content)
        return _ok({"id": "a1"}, status=201)

    api, _ = _client(handler)
    api.mark_attendance(work_date=date(2026, 3, 2), status=AttendanceStatus.PRESENT, clock_out=time(16, 0), notes="bye")
    assert seen["json"] == {"date": "2026-03-02", "status": "present", "notes": "bye", "clockOut": "16:00:00"}
