from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import format_clock_time, parse_clock_time, parse_iso_date
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one worker's attendance for one calendar date."""

    attendance_id: str
    user_id: str
    work_date: date
    status: AttendanceStatus
    clock_in: Optional[time] = None
    clock_out: Optional[time] = None
    notes: Optional[str] = None
    farm_id: Optional[str] = None
    recorded_by: Optional[str] = None
    worker_name: Optional[str] = None
    worker_role: Optional[str] = None
    recorded_by_name: Optional[str] = None

    @property
    def is_clocked_in(self) -> bool:
        return self.clock_in is not None and self.clock_out is None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "user_id": self.user_id,
            "attendance_date": self.work_date.isoformat(),
            "status": self.status.value,
            "clock_in": format_clock_time(self.clock_in),
            "clock_out": format_clock_time(self.clock_out),
            "notes": self.notes,
            "worker_name": self.worker_name,
            "worker_role": self.worker_role,
            "recorded_by_name": self.recorded_by_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttendanceRecord":
        return cls(
            attendance_id=str(data["id"]),
            user_id=str(data.get("user_id") or ""),
            work_date=parse_iso_date(str(data["attendance_date"])),
            status=AttendanceStatus(data["status"]),
            clock_in=parse_clock_time(data.get("clock_in")),
            clock_out=parse_clock_time(data.get("clock_out")),
            notes=data.get("notes"),
            worker_name=data.get("worker_name"),
            worker_role=data.get("worker_role"),
            recorded_by_name=data.get("recorded_by_name"),
        )


@dataclass(frozen=True)
class AttendanceStatistics:
    total_records: int = 0
    present: int = 0
    absent: int = 0
    half_day: int = 0
    late: int = 0

    @classmethod
    def of(cls, records: Sequence[AttendanceRecord]) -> "AttendanceStatistics":
        def count(status: AttendanceStatus) -> int:
            return sum(1 for r in records if r.status == status)

        return cls(
            total_records=len(records),
            present=count(AttendanceStatus.PRESENT),
            absent=count(AttendanceStatus.ABSENT),
            half_day=count(AttendanceStatus.HALF_DAY),
            late=count(AttendanceStatus.LATE),
        )

    @property
    def attendance_rate(self) -> int:
        """Percent of days attended (present or late), rounded."""

        if not self.total_records:
            return 0
        return round((self.present + self.late) * 100 / self.total_records)

    def to_dict(self) -> dict:
        return {
            "totalRecords": self.total_records,
            "present": self.present,
            "absent": self.absent,
            "halfDay": self.half_day,
            "late": self.late,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttendanceStatistics":
        return cls(
            total_records=int(data.get("totalRecords", data.get("totalDays", 0)) or 0),
            present=int(data.get("present", 0) or 0),
            absent=int(data.get("absent", 0) or 0),
            half_day=int(data.get("halfDay", 0) or 0),
            late=int(data.get("late", 0) or 0),
        )


@dataclass(frozen=True)
class AttendanceSnapshot:
    """One poll's worth of server state. Replaced wholesale on every poll."""

    records: tuple[AttendanceRecord, ...]
    statistics: AttendanceStatistics
    fetched_at: datetime


@dataclass(frozen=True)
class ClockState:
    clocked_in: bool = False
    started_at: Optional[datetime] = None
    record: Optional[AttendanceRecord] = field(default=None, compare=False)
