from __future__ import annotations

import uuid
from datetime import date, time
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT a.id, a.user_id, a.farm_id, a.attendance_date, a.status, a.clock_in, a.clock_out,
           a.notes, a.recorded_by,
           u.full_name AS worker_name, u.role AS worker_role,
           recorder.full_name AS recorded_by_name
    FROM attendance a
    INNER JOIN users u ON a.user_id = u.id
    LEFT JOIN users recorder ON a.recorded_by = recorder.id
"""


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=str(r["id"]),
        user_id=str(r["user_id"]),
        work_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        clock_in=normalize_mysql_time(r.get("clock_in")),
        clock_out=normalize_mysql_time(r.get("clock_out")),
        notes=r.get("notes"),
        farm_id=r.get("farm_id"),
        recorded_by=r.get("recorded_by"),
        worker_name=r.get("worker_name"),
        worker_role=r.get("worker_role"),
        recorded_by_name=r.get("recorded_by_name"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find(self, *, user_id: str, farm_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE a.user_id=%s AND a.farm_id=%s AND a.attendance_date=%s",
                (user_id, farm_id, work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert(
        self,
        *,
        user_id: str,
        farm_id: str,
        work_date: date,
        status: AttendanceStatus,
        clock_in: Optional[time],
        clock_out: Optional[time],
        notes: Optional[str],
        recorded_by: str,
    ) -> str:
        attendance_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            # Two clients racing on the same (worker, farm, date) collapse into one row.
            cur.execute(
                """
                INSERT INTO attendance
                    (id, user_id, farm_id, attendance_date, status, clock_in, clock_out, notes, recorded_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    clock_in=COALESCE(VALUES(clock_in), clock_in),
                    clock_out=COALESCE(VALUES(clock_out), clock_out),
                    notes=VALUES(notes),
                    recorded_by=VALUES(recorded_by)
                """,
                (attendance_id, user_id, farm_id, work_date, status.value, clock_in, clock_out, notes, recorded_by),
            )
            # rowcount is 1 only for a fresh insert; 2 or 0 means an existing row was kept.
            if cur.rowcount != 1:
                cur.execute(
                    "SELECT id FROM attendance WHERE user_id=%s AND farm_id=%s AND attendance_date=%s",
                    (user_id, farm_id, work_date),
                )
                r = fetchone(cur)
                if r:
                    attendance_id = str(r["id"])
        return attendance_id

    def update(
        self,
        attendance_id: str,
        *,
        status: AttendanceStatus,
        clock_in: Optional[time],
        clock_out: Optional[time],
        notes: Optional[str],
        recorded_by: str,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET status=%s, clock_in=%s, clock_out=%s, notes=%s, recorded_by=%s
                WHERE id=%s
                """,
                (status.value, clock_in, clock_out, notes, recorded_by, attendance_id),
            )

    def list_for_farm(
        self,
        farm_id: str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        query = _SELECT + " WHERE a.farm_id=%s"
        params: list[Any] = [farm_id]
        if start:
            query += " AND a.attendance_date >= %s"
            params.append(start)
        if end:
            query += " AND a.attendance_date <= %s"
            params.append(end)
        if user_id:
            query += " AND a.user_id = %s"
            params.append(user_id)
        query += " ORDER BY a.attendance_date DESC, u.full_name ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(query, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]
