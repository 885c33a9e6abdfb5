from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .submissions.mysql_submission_repository import MySQLSubmissionRepository
from .submissions.photo_store import PhotoStore
from .submissions.service import SubmissionService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.service import TaskService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    task_service: TaskService
    submission_service: SubmissionService
    attendance_service: AttendanceService


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_access_minutes: int,
    upload_dir: str,
    max_photo_bytes: int,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    tasks_repo = MySQLTaskRepository(conn)
    submissions_repo = MySQLSubmissionRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    return Container(
        auth_service=AuthService(users_repo, jwt_secret=jwt_secret, ttl_minutes=jwt_access_minutes),
        task_service=TaskService(tasks_repo),
        submission_service=SubmissionService(
            submissions_repo,
            tasks_repo,
            PhotoStore(upload_dir, max_bytes=max_photo_bytes),
        ),
        attendance_service=AttendanceService(attendance_repo, users_repo),
    )
