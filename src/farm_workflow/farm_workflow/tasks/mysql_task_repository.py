from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import TaskPriority, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Task
from .repository import TaskRepository

_SELECT = """
    SELECT t.id, t.farm_id, t.title, t.description, t.priority, t.due_date, t.status,
           t.assigned_to, t.location, t.estimated_hours, t.created_by, t.created_at,
           u1.full_name AS assigned_to_name, u2.full_name AS created_by_name
    FROM tasks t
    LEFT JOIN users u1 ON t.assigned_to = u1.id
    LEFT JOIN users u2 ON t.created_by = u2.id
"""


def _to_task(r: Dict[str, Any]) -> Task:
    hours = r.get("estimated_hours")
    return Task(
        task_id=str(r["id"]),
        title=r["title"],
        description=r.get("description"),
        priority=TaskPriority(r["priority"]),
        status=TaskStatus(r["status"]),
        due_date=r.get("due_date"),
        assigned_to=r.get("assigned_to"),
        location=r.get("location"),
        estimated_hours=float(hours) if hours is not None else None,
        farm_id=r.get("farm_id"),
        created_by=r.get("created_by"),
        assigned_to_name=r.get("assigned_to_name"),
        created_by_name=r.get("created_by_name"),
        created_at=r.get("created_at"),
    )


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, task_id: str) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE t.id=%s", (task_id,))
            r = fetchone(cur)
            return _to_task(r) if r else None

    def list_for_assignee(self, *, farm_id: str, user_id: str) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE t.farm_id=%s AND t.assigned_to=%s
                ORDER BY
                  CASE t.status
                    WHEN 'pending' THEN 1
                    WHEN 'in_progress' THEN 2
                    WHEN 'completed' THEN 3
                    ELSE 4
                  END,
                  t.due_date IS NULL, t.due_date ASC, t.created_at DESC
                """,
                (farm_id, user_id),
            )
            return [_to_task(r) for r in fetchall(cur)]

    def update_status(self, task_id: str, status: TaskStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE tasks SET status=%s WHERE id=%s", (status.value, task_id))
            return cur.rowcount > 0
