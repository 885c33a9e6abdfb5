from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence

import structlog

from ..common.datetime_utils import now_local, parse_clock_time, parse_iso_date
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..users.model import SessionUser
from ..users.repository import UserRepository
from .model import AttendanceRecord, AttendanceStatistics
from .repository import AttendanceRepository

logger = structlog.get_logger(__name__)

RECORDER_ROLES = frozenset({Role.OWNER, Role.MANAGER})


@dataclass(frozen=True)
class MarkResult:
    attendance_id: str
    created: bool


@dataclass(frozen=True)
class BulkMarkResult:
    marked: tuple[str, ...] = ()
    failed_users: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "success": len(self.marked),
            "failed": len(self.failed_users),
            "failedUsers": list(self.failed_users),
        }


@dataclass(frozen=True)
class MonthlySummary:
    user_id: str
    month: int
    year: int
    records: Sequence[AttendanceRecord] = field(default_factory=tuple)

    @property
    def statistics(self) -> AttendanceStatistics:
        return AttendanceStatistics.of(self.records)

    def to_dict(self) -> dict:
        stats = self.statistics
        data = stats.to_dict()
        data["attendanceRate"] = stats.attendance_rate
        return {
            "records": [r.to_dict() for r in self.records],
            "statistics": data,
            "month": self.month,
            "year": self.year,
        }


def _parse_status(value: Any) -> Optional[AttendanceStatus]:
    if value in (None, ""):
        return None
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError("Invalid attendance status")


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError("Date is required")
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError("Invalid date, expected YYYY-MM-DD")


def _parse_time(value: Any, field_name: str):
    try:
        return parse_clock_time(value)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}, expected HH:MM[:SS]")


class AttendanceService:
    """Use cases: mark (upsert by worker and date), bulk mark, list and summarise attendance."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository, *, clock: Optional[Callable] = None):
        self._attendance = attendance
        self._users = users
        self._clock = clock or now_local

    @staticmethod
    def _farm_of(current_user: SessionUser) -> str:
        if not current_user.farm_id:
            raise NotFoundError("No farm associated with this user")
        return current_user.farm_id

    def _target_user(self, current_user: SessionUser, user_id: Optional[str]) -> str:
        if not user_id or user_id == current_user.user_id:
            return current_user.user_id
        if current_user.role not in RECORDER_ROLES:
            raise AuthorizationError("Workers can only mark their own attendance")
        target = self._users.get_by_id(user_id)
        if not target or target.farm_id != current_user.farm_id:
            raise NotFoundError("Worker not found")
        return target.user_id

    def mark(
        self,
        current_user: SessionUser,
        *,
        work_date: Any,
        status: Any = None,
        clock_in: Any = None,
        clock_out: Any = None,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> MarkResult:
        farm_id = self._farm_of(current_user)
        target_id = self._target_user(current_user, user_id)
        day = _parse_date(work_date)
        new_status = _parse_status(status)
        new_in = _parse_time(clock_in, "clockIn")
        new_out = _parse_time(clock_out, "clockOut")

        existing = self._attendance.find(user_id=target_id, farm_id=farm_id, work_date=day)
        if existing:
            # Omitted clock times and status keep the stored values; notes are replaced.
            self._attendance.update(
                existing.attendance_id,
                status=new_status or existing.status,
                clock_in=new_in if new_in is not None else existing.clock_in,
                clock_out=new_out if new_out is not None else existing.clock_out,
                notes=notes,
                recorded_by=current_user.user_id,
            )
            logger.info("attendance_updated", attendance_id=existing.attendance_id, user_id=target_id, date=day.isoformat())
            return MarkResult(attendance_id=existing.attendance_id, created=False)

        if new_status is None:
            raise ValidationError("Status is required")
        attendance_id = self._attendance.insert(
            user_id=target_id,
            farm_id=farm_id,
            work_date=day,
            status=new_status,
            clock_in=new_in,
            clock_out=new_out,
            notes=notes,
            recorded_by=current_user.user_id,
        )
        logger.info("attendance_marked", attendance_id=attendance_id, user_id=target_id, date=day.isoformat())
        return MarkResult(attendance_id=attendance_id, created=True)

    def bulk_mark(self, current_user: SessionUser, *, work_date: Any, records: Sequence[Mapping[str, Any]]) -> BulkMarkResult:
        if current_user.role not in RECORDER_ROLES:
            raise AuthorizationError("Insufficient permissions")
        day = _parse_date(work_date)
        if not isinstance(records, (list, tuple)):
            raise ValidationError("attendanceRecords must be a list")

        marked: list[str] = []
        failed: list[str] = []
        for item in records:
            target = str((item or {}).get("userId") or "")
            try:
                if not target:
                    raise ValidationError("userId is required")
                self.mark(
                    current_user,
                    work_date=day,
                    status=item.get("status"),
                    clock_in=item.get("clockIn"),
                    clock_out=item.get("clockOut"),
                    notes=item.get("notes"),
                    user_id=target,
                )
                marked.append(target)
            except DomainError as e:
                logger.warning("bulk_attendance_failed", user_id=target, error=str(e))
                failed.append(target)
        return BulkMarkResult(marked=tuple(marked), failed_users=tuple(failed))

    def list_for_farm(
        self,
        current_user: SessionUser,
        *,
        start: Any = None,
        end: Any = None,
        worker_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        if current_user.role not in RECORDER_ROLES:
            raise AuthorizationError("Insufficient permissions")
        return self._attendance.list_for_farm(
            self._farm_of(current_user),
            start=_parse_date(start) if start else None,
            end=_parse_date(end) if end else None,
            user_id=worker_id or None,
        )

    def list_mine(self, current_user: SessionUser, *, start: Any = None, end: Any = None) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_farm(
            self._farm_of(current_user),
            start=_parse_date(start) if start else None,
            end=_parse_date(end) if end else None,
            user_id=current_user.user_id,
        )

    def summary(
        self,
        current_user: SessionUser,
        *,
        worker_id: Optional[str] = None,
        month: Any = None,
        year: Any = None,
    ) -> MonthlySummary:
        farm_id = self._farm_of(current_user)
        target_id = self._target_user(current_user, worker_id)
        today = self._clock().date()
        try:
            m = int(month) if month else today.month
            y = int(year) if year else today.year
            first = date(y, m, 1)
        except ValueError:
            raise ValidationError("Invalid month or year")
        last = (date(y + 1, 1, 1) if m == 12 else date(y, m + 1, 1)) - timedelta(days=1)

        records = list(self._attendance.list_for_farm(farm_id, start=first, end=last, user_id=target_id))
        records.sort(key=lambda r: r.work_date)
        return MonthlySummary(user_id=target_id, month=m, year=y, records=tuple(records))
