from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def find(self, *, user_id: str, farm_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def list_for_farm(
        self,
        farm_id: str,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
