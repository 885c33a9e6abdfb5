from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import SubmissionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Submission
from .repository import SubmissionRepository

_SELECT = """
    SELECT ts.id, ts.task_id, ts.submitted_by, ts.notes, ts.photo_url, ts.status,
           ts.submitted_at, ts.review_notes, ts.reviewed_by, ts.reviewed_at,
           u.full_name AS submitted_by_name, r.full_name AS reviewed_by_name,
           t.title AS task_title
    FROM task_submissions ts
    JOIN tasks t ON ts.task_id = t.id
    JOIN users u ON ts.submitted_by = u.id
    LEFT JOIN users r ON ts.reviewed_by = r.id
"""


def _to_submission(r: Dict[str, Any]) -> Submission:
    return Submission(
        submission_id=str(r["id"]),
        task_id=str(r["task_id"]),
        notes=r.get("notes") or "",
        submitted_at=r["submitted_at"],
        status=SubmissionStatus(r["status"]),
        submitted_by=r.get("submitted_by"),
        photo_url=r.get("photo_url"),
        review_notes=r.get("review_notes"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        submitted_by_name=r.get("submitted_by_name"),
        reviewed_by_name=r.get("reviewed_by_name"),
        task_title=r.get("task_title"),
    )


class MySQLSubmissionRepository(SubmissionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_pending(
        self,
        *,
        task_id: str,
        submitted_by: str,
        notes: str,
        photo_url: Optional[str],
    ) -> Optional[str]:
        submission_id = str(uuid.uuid4())
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO task_submissions (id, task_id, submitted_by, notes, photo_url, status)
                    VALUES (%s, %s, %s, %s, %s, 'pending')
                    """,
                    (submission_id, task_id, submitted_by, notes, photo_url),
                )
        except IntegrityError as e:
            # uq_task_submissions_one_pending: another pending row won the race.
            if e.errno == errorcode.ER_DUP_ENTRY:
                return None
            raise
        return submission_id

    def get_by_id(self, submission_id: str) -> Optional[Submission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE ts.id=%s", (submission_id,))
            r = fetchone(cur)
            return _to_submission(r) if r else None

    def list_for_task(self, task_id: str) -> Sequence[Submission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE ts.task_id=%s ORDER BY ts.submitted_at DESC, ts.id DESC", (task_id,))
            return [_to_submission(r) for r in fetchall(cur)]

    def list_for_farm(self, farm_id: str) -> Sequence[Submission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE t.farm_id=%s ORDER BY ts.submitted_at DESC, ts.id DESC",
                (farm_id,),
            )
            return [_to_submission(r) for r in fetchall(cur)]

    def has_pending(self, task_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM task_submissions WHERE task_id=%s AND status='pending' LIMIT 1",
                (task_id,),
            )
            return fetchone(cur) is not None

    def decide(
        self,
        submission_id: str,
        *,
        status: SubmissionStatus,
        reviewed_by: str,
        review_notes: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE task_submissions
                SET status=%s, review_notes=%s, reviewed_by=%s, reviewed_at=NOW()
                WHERE id=%s AND status='pending'
                """,
                (status.value, review_notes, reviewed_by, submission_id),
            )
            return cur.rowcount > 0
