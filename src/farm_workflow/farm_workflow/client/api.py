from __future__ import annotations

from datetime import date
from typing import Any, Optional

import httpx
import structlog

from ..attendance.model import AttendanceRecord, AttendanceStatistics
from ..auth.guard import AuthGuard
from ..auth.session import ClientSession
from ..common.datetime_utils import format_clock_time
from ..core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from ..core.enums import AttendanceStatus, Role, SubmissionStatus, TaskStatus
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from ..submissions.model import PhotoUpload, Submission
from ..tasks.model import Task

logger = structlog.get_logger(__name__)

_STATUS_ERRORS = {
    400: ValidationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
    413: ValidationError,
}


class FarmApiClient:
    """HTTP client for the farm REST API.

    Every call goes through the :class:`AuthGuard` first; a 401 from the server
    clears the session, hands off to the login collaborator and raises
    ``AuthExpired``. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        guard: AuthGuard,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._guard = guard
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "FarmApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------- Session --------
    def login(self, email: str, password: str) -> ClientSession:
        try:
            response = self._http.post("/auth/login", json={"email": email, "password": password})
        except httpx.HTTPError as e:
            raise NetworkError(f"Login failed: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError(self._message(response, "Invalid email or password"))
        data = self._unwrap(response)
        user = data.get("user") or {}
        session = ClientSession(
            access_token=data["accessToken"],
            role=Role(user["role"]) if user.get("role") else None,
            user_id=user.get("id"),
            email=user.get("email"),
            full_name=user.get("full_name"),
        )
        self._guard.store.set(session)
        return session

    def logout(self) -> None:
        self._guard.store.clear()

    # -------- Tasks --------
    def my_tasks(self) -> list[Task]:
        data = self._request("GET", "/tasks/my-tasks")
        return [Task.from_dict(t) for t in (data or {}).get("tasks", [])]

    def update_task_status(self, task_id: str, status: TaskStatus) -> None:
        self._request("PATCH", f"/tasks/{task_id}/status", json={"status": status.value})

    # -------- Submissions --------
    def task_submissions(self, task_id: str) -> list[Submission]:
        data = self._request("GET", f"/task-submissions/{task_id}/submissions")
        return [Submission.from_dict(s) for s in data or []]

    def all_submissions(self) -> list[Submission]:
        data = self._request("GET", "/task-submissions/submissions/all")
        return [Submission.from_dict(s) for s in data or []]

    def submit_task(self, task_id: str, notes: str, photo: Optional[PhotoUpload] = None) -> str:
        files = None
        if photo is not None:
            files = {"photo": (photo.filename, photo.content, photo.content_type)}
        data = self._request("POST", f"/task-submissions/{task_id}/submit", data={"notes": notes}, files=files)
        return str((data or {}).get("submissionId", ""))

    def review_submission(
        self,
        submission_id: str,
        status: SubmissionStatus,
        review_notes: Optional[str] = None,
    ) -> None:
        self._request(
            "PATCH",
            f"/task-submissions/submissions/{submission_id}/review",
            json={"status": status.value, "reviewNotes": review_notes},
        )

    # -------- Attendance --------
    def attendance(
        self,
        start: date,
        end: date,
        *,
        worker_id: Optional[str] = None,
    ) -> tuple[list[AttendanceRecord], AttendanceStatistics]:
        params = {"startDate": start.isoformat(), "endDate": end.isoformat()}
        if worker_id:
            params["workerId"] = worker_id
        return self._records(self._request("GET", "/attendance", params=params))

    def my_attendance(self, start: date, end: date) -> tuple[list[AttendanceRecord], AttendanceStatistics]:
        params = {"startDate": start.isoformat(), "endDate": end.isoformat()}
        return self._records(self._request("GET", "/attendance/my-attendance", params=params))

    def mark_attendance(
        self,
        *,
        work_date: date,
        status: AttendanceStatus,
        clock_in=None,
        clock_out=None,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        body: dict[str, Any] = {
            "date": work_date.isoformat(),
            "status": status.value,
            "notes": notes,
        }
        if clock_in is not None:
            body["clockIn"] = format_clock_time(clock_in)
        if clock_out is not None:
            body["clockOut"] = format_clock_time(clock_out)
        if user_id:
            body["userId"] = user_id
        self._request("POST", "/attendance", json=body)

    # -------- Plumbing --------
    @staticmethod
    def _records(data) -> tuple[list[AttendanceRecord], AttendanceStatistics]:
        data = data or {}
        records = [AttendanceRecord.from_dict(r) for r in data.get("records", [])]
        return records, AttendanceStatistics.from_dict(data.get("statistics") or {})

    def _request(self, method: str, path: str, **kwargs) -> Any:
        token = self._guard.ensure_valid()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("api_timeout", method=method, path=path)
            raise NetworkError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.warning("api_transport_error", method=method, path=path, error=str(e))
            raise NetworkError(f"Network error: {e}") from e

        if response.status_code == 401:
            self._guard.expire(self._message(response, "Session expired. Please login again."))
        return self._unwrap(response)

    def _unwrap(self, response: httpx.Response) -> Any:
        status = response.status_code
        if status >= 500:
            logger.warning("api_server_error", status_code=status, path=response.request.url.path)
            raise NetworkError(self._message(response, f"Server error ({status})"))
        if status >= 400:
            error_cls = _STATUS_ERRORS.get(status, DomainError)
            raise error_cls(self._message(response, f"Request failed ({status})"))

        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _message(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return default
