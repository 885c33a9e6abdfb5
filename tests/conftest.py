from __future__ import annotations

import io
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest
from PIL import Image
from werkzeug.security import generate_password_hash

from src.farm_workflow.farm_workflow.attendance.model import AttendanceRecord
from src.farm_workflow.farm_workflow.core.enums import Role, SubmissionStatus, TaskStatus
from src.farm_workflow.farm_workflow.submissions.model import Submission
from src.farm_workflow.farm_workflow.tasks.model import Task
from src.farm_workflow.farm_workflow.users.model import SessionUser, User

FARM = "farm-1"


class FakeUsersRepo:
    def __init__(self, users=()):
        self._users = {u.user_id: u for u in users}

    def add(self, user: User) -> User:
        self._users[user.user_id] = user
        return user

    def get_by_id(self, user_id):
        return self._users.get(user_id)

    def get_by_email(self, email):
        return next((u for u in self._users.values() if u.email == email.strip().lower()), None)


class FakeTasksRepo:
    def __init__(self, tasks=()):
        self._tasks = {t.task_id: t for t in tasks}
        self.status_updates: list[tuple[str, TaskStatus]] = []

    def add(self, task: Task) -> Task:
        self._tasks[task.task_id] = task
        return task

    def get_by_id(self, task_id):
        return self._tasks.get(task_id)

    def list_for_assignee(self, *, farm_id, user_id):
        return [t for t in self._tasks.values() if t.farm_id == farm_id and t.assigned_to == user_id]

    def update_status(self, task_id, status):
        task = self._tasks.get(task_id)
        if not task:
            return False
        self._tasks[task_id] = replace(task, status=status)
        self.status_updates.append((task_id, status))
        return True


class FakeSubmissionsRepo:
    def __init__(self, tasks: FakeTasksRepo):
        self._tasks = tasks
        self._subs: dict[str, Submission] = {}
        self._clock = datetime(2026, 3, 1, 8, 0)

    def _tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def create_pending(self, *, task_id, submitted_by, notes, photo_url):
        if self.has_pending(task_id):
            return None
        sid = str(uuid.uuid4())
        self._subs[sid] = Submission(
            submission_id=sid,
            task_id=task_id,
            notes=notes,
            submitted_at=self._tick(),
            status=SubmissionStatus.PENDING,
            submitted_by=submitted_by,
            photo_url=photo_url,
        )
        return sid

    def get_by_id(self, submission_id):
        return self._subs.get(submission_id)

    def list_for_task(self, task_id):
        subs = [s for s in self._subs.values() if s.task_id == task_id]
        return sorted(subs, key=lambda s: (s.submitted_at, s.submission_id), reverse=True)

    def list_for_farm(self, farm_id):
        subs = [s for s in self._subs.values() if getattr(self._tasks.get_by_id(s.task_id), "farm_id", None) == farm_id]
        return sorted(subs, key=lambda s: (s.submitted_at, s.submission_id), reverse=True)

    def has_pending(self, task_id):
        return any(s.is_pending for s in self._subs.values() if s.task_id == task_id)

    def decide(self, submission_id, *, status, reviewed_by, review_notes):
        sub = self._subs.get(submission_id)
        if not sub or not sub.is_pending:
            return False
        self._subs[submission_id] = replace(
            sub,
            status=status,
            reviewed_by=reviewed_by,
            review_notes=review_notes,
            reviewed_at=self._tick(),
        )
        return True


class FakeAttendanceRepo:
    def __init__(self):
        self.rows: dict[str, AttendanceRecord] = {}

    def find(self, *, user_id, farm_id, work_date):
        return next(
            (r for r in self.rows.values() if r.user_id == user_id and r.farm_id == farm_id and r.work_date == work_date),
            None,
        )

    def insert(self, *, user_id, farm_id, work_date, status, clock_in, clock_out, notes, recorded_by):
        aid = str(uuid.uuid4())
        self.rows[aid] = AttendanceRecord(
            attendance_id=aid,
            user_id=user_id,
            work_date=work_date,
            status=status,
            clock_in=clock_in,
            clock_out=clock_out,
            notes=notes,
            farm_id=farm_id,
            recorded_by=recorded_by,
        )
        return aid

    def update(self, attendance_id, *, status, clock_in, clock_out, notes, recorded_by):
        self.rows[attendance_id] = replace(
            self.rows[attendance_id],
            status=status,
            clock_in=clock_in,
            clock_out=clock_out,
            notes=notes,
            recorded_by=recorded_by,
        )

    def list_for_farm(self, farm_id, *, start=None, end=None, user_id=None):
        rows = [
            r
            for r in self.rows.values()
            if r.farm_id == farm_id
            and (start is None or r.work_date >= start)
            and (end is None or r.work_date <= end)
            and (user_id is None or r.user_id == user_id)
        ]
        return sorted(rows, key=lambda r: r.work_date, reverse=True)


def _user(user_id, role, *, farm_id=FARM, password="secret123", active=True):
    return User(
        user_id=user_id,
        full_name=f"{role.value} {user_id}",
        email=f"{user_id}@farm.local",
        password_hash=generate_password_hash(password),
        role=role,
        farm_id=farm_id,
        is_active=active,
    )


def session_of(user: User) -> SessionUser:
    return SessionUser(
        user_id=user.user_id,
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        farm_id=user.farm_id,
    )


@pytest.fixture
def users_repo():
    return FakeUsersRepo(
        [
            _user("owner", Role.OWNER),
            _user("manager", Role.MANAGER),
            _user("worker", Role.WORKER),
            _user("worker2", Role.WORKER),
            _user("outsider", Role.WORKER, farm_id="farm-2"),
            _user("viewer", Role.VIEWER),
            _user("gone", Role.WORKER, active=False),
        ]
    )


@pytest.fixture
def as_user(users_repo):
    def _as(user_id: str) -> SessionUser:
        return session_of(users_repo.get_by_id(user_id))

    return _as


@pytest.fixture
def tasks_repo():
    return FakeTasksRepo(
        [
            Task(task_id="t1", title="Irrigate north field", status=TaskStatus.PENDING, farm_id=FARM, assigned_to="worker"),
            Task(
                task_id="t2",
                title="Feed the goats",
                status=TaskStatus.IN_PROGRESS,
                farm_id=FARM,
                assigned_to="worker",
                due_date=date(2026, 2, 20),
            ),
            Task(task_id="t3", title="Fix fence", status=TaskStatus.PENDING, farm_id=FARM, assigned_to="worker2"),
            Task(task_id="t4", title="Old job", status=TaskStatus.CANCELLED, farm_id=FARM, assigned_to="worker"),
        ]
    )


@pytest.fixture
def submissions_repo(tasks_repo):
    return FakeSubmissionsRepo(tasks_repo)


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(0, 128, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 9, 15, 0)
